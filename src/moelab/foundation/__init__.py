"""Core data types, configuration, metrics and errors shared by every study stage."""

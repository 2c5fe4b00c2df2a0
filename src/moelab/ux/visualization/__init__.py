from .plotting import plot_indicator_boxplot, plot_reference_front, save_indicator_boxplots

__all__ = ["plot_indicator_boxplot", "plot_reference_front", "save_indicator_boxplots"]

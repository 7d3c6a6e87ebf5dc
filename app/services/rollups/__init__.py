from .categories import compute_category_breakdown
from .groups import UNCLASSIFIED_GROUP, group_positions

__all__ = ["compute_category_breakdown", "group_positions", "UNCLASSIFIED_GROUP"]

from .report import save_metrics, write_tables

__all__ = ["save_metrics", "write_tables"]

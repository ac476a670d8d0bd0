from .paths import get_vrchat_log_dir

__all__ = ["get_vrchat_log_dir"]

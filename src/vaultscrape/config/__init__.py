from .config import CacheConfig, MonitoringConfig, ScraperConfig, Settings, find_config_file

__all__ = ["CacheConfig", "MonitoringConfig", "ScraperConfig", "Settings", "find_config_file"]

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    provider: str = 'dummy'
    model_id: str = 'resnet50'
    remote_base_url: str = 'http://127.0.0.1:5000'
    remote_predict_path: str = '/model/predict'
    remote_timeout_ms: int = 12000
    torch_weights: str = 'DEFAULT'
    classifier_top_k: int = 15
    food_data_path: str = 'calorie_lens/data/foods.json'
    max_results_to_analyze: int = 15
    max_items: int = 8
    fallback_max_items: int = 5
    estimate_min_confidence: float = 0.3
    fallback_min_confidence: float = 0.5
    max_sessions: int = 1024
    max_image_bytes: int = 8 * 1024 * 1024
    host: str = '127.0.0.1'
    port: int = 8001
    log_level: str = 'INFO'
    version: str = '1.0.0'


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

import os

from pydantic import BaseModel, Field, ValidationError

from config import YamlConfig

DB_PATH_ENV = "LIFTLOG_DB_PATH"


class SettingsSchema(BaseModel):
    db_path: str = "workout.db"
    history_limit: int = Field(3, ge=1)
    recent_limit: int = Field(5, ge=1)
    default_set_reps: int = Field(10, ge=0)
    log_level: str = "INFO"


def validate_settings(data: dict) -> SettingsSchema:
    try:
        return SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))


def load_settings(yaml_path: str = "settings.yaml") -> SettingsSchema:
    """Read settings from ``yaml_path`` with environment overrides applied."""
    data = YamlConfig(yaml_path).load()
    if os.environ.get(DB_PATH_ENV):
        data["db_path"] = os.environ[DB_PATH_ENV]
    return validate_settings(data)

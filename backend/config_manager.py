import os
import yaml
import logging

logger = logging.getLogger("ConfigManager")

DEFAULTS = {
    "text_model": "gemini-2.5-flash",
    "image_model": "gemini-2.5-flash-image",
    "trend_count": 4,
    "default_unit": "C",
    "default_style": "Isometric",
    "default_temperature": 24,
    "location_placeholder_city": "San Francisco, USA",
    "geocoding_enabled": True,
    "geocoding_url": "https://geocoding-api.open-meteo.com/v1/search",
    "history_size": 10,
    "log_level": "INFO",
}

# Environment variables that win over both yaml files
ENV_OVERRIDES = {
    "gemini_api_key": ("GEMINI_API_KEY", "API_KEY"),
    "log_level": ("LOG_LEVEL",),
}


class ConfigManager:
    def __init__(self, config_path):
        self.base_path = config_path
        base_dir = os.path.dirname(config_path)
        filename = os.path.basename(config_path)
        name, ext = os.path.splitext(filename)
        self.local_path = os.path.join(base_dir, f"{name}.local{ext}")
        self.data = {}
        self.reload()

    def _read_yaml(self, path):
        if not os.path.exists(path):
            return {}
        try:
            with open(path, 'r') as f:
                loaded = yaml.safe_load(f)
                return loaded if isinstance(loaded, dict) else {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Config Error in {path}: {e}")
            return {}

    def reload(self):
        self.data = dict(DEFAULTS)
        self.data.update(self._read_yaml(self.base_path))
        self.data.update(self._read_yaml(self.local_path))

        for key, env_names in ENV_OVERRIDES.items():
            for env_name in env_names:
                value = os.getenv(env_name)
                if value:
                    self.data[key] = value
                    break

    def get(self, key, default=None):
        return self.data.get(key, default)

    @property
    def font_paths(self):
        return {"regular": self.data.get("font_path"), "bold": self.data.get("bold_font_path")}

    def update_from_form(self, form_data: dict):
        clean = {}
        for k, v in form_data.items():
            if v is None or (isinstance(v, str) and v.strip() == ""):
                continue
            if k not in DEFAULTS and k not in ("gemini_api_key", "font_path", "bold_font_path"):
                continue
            clean[k] = v

        for int_key in ("trend_count", "default_temperature", "history_size"):
            if int_key in clean:
                try: clean[int_key] = int(clean[int_key])
                except (TypeError, ValueError): clean.pop(int_key)

        if "geocoding_enabled" in clean and isinstance(clean["geocoding_enabled"], str):
            clean["geocoding_enabled"] = clean["geocoding_enabled"].lower() in ("1", "true", "on", "yes")

        self.save_local(clean)

    def save_local(self, updates):
        try:
            current = self._read_yaml(self.local_path)
            current.update({k: v for k, v in updates.items() if v is not None and v != ""})
            with open(self.local_path, 'w') as f:
                yaml.dump(current, f, sort_keys=False)
            self.reload()
        except OSError as e:
            logger.error(f"Config Save Error: {e}")

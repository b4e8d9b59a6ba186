import json
import logging
import os

DEFAULTS = {
    'pitches': ['barnebau', 'noucamp'],
    'hourly_price': 1500,
    'sync_days': 28,
    'db_path': None,
}


def _config_path():
    base = os.path.join(os.path.expanduser('~'), '.halisaha')
    os.makedirs(base, exist_ok=True)
    return os.path.join(base, 'halisaha_config.json')


def load_config(path=None):
    path = path or _config_path()
    cfg = dict(DEFAULTS)
    if not os.path.exists(path):
        return cfg
    try:
        with open(path, 'r', encoding='utf-8') as f:
            cfg.update(json.load(f))
    except (OSError, ValueError) as e:
        logging.error(f"Config {path} nicht lesbar, nehme Standardwerte: {e}")
        return dict(DEFAULTS)
    return cfg


def save_config(cfg: dict, path=None):
    path = path or _config_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(cfg, f, ensure_ascii=False, indent=2)

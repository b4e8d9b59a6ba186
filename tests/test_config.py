from halisaha.config import DEFAULTS, load_config, save_config


def test_defaults_when_missing(tmp_path):
    cfg = load_config(str(tmp_path / 'missing.json'))
    assert cfg == DEFAULTS


def test_saved_values_override_defaults(tmp_path):
    path = str(tmp_path / 'cfg.json')
    save_config({'hourly_price': 1800}, path)
    cfg = load_config(path)
    assert cfg['hourly_price'] == 1800
    assert cfg['sync_days'] == 28


def test_broken_file_falls_back(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{nope', encoding='utf-8')
    assert load_config(str(path)) == DEFAULTS

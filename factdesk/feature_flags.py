import os

# Flags default to these values unless an FF_<NAME> env var overrides them.
DEFAULTS = {
    'ai_suggestions': True,
    'duplicate_detection': True,
}

_FLAGS = {}


def init_flags():
    _FLAGS.clear()
    _FLAGS.update(DEFAULTS)
    for key, val in os.environ.items():
        if key.startswith('FF_'):
            flag_name = key[3:].lower()
            _FLAGS[flag_name] = val.lower() in ('true', '1', 'yes')


def is_enabled(flag_name: str) -> bool:
    return _FLAGS.get(flag_name, DEFAULTS.get(flag_name, False))


def all_flags() -> dict:
    return dict(_FLAGS)


def set_flag(flag_name: str, value: bool):
    _FLAGS[flag_name] = value

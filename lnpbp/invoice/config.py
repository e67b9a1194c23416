import os


CONFIG_FILE = 'config.vars'


def env(name, default=None):
    """Access to configuration values

    Looks the name up in the environment, then in a `config.vars` file of
    `key=value` lines in the current directory, and finally falls back to
    the default value.

    """
    if os.path.exists(CONFIG_FILE):
        with open(CONFIG_FILE, 'r') as f:
            lines = [line.rstrip() for line in f if '=' in line]
        config = dict([line.split('=', 1) for line in lines])
    else:
        config = {}

    if name in os.environ:
        return os.environ[name]
    elif name in config:
        return config[name]
    else:
        return default


def strict_signature() -> bool:
    """Whether network and endpoint changes also drop the signature."""
    return env("LNPBP_INVOICE_STRICT_SIGNATURE", "0") == "1"

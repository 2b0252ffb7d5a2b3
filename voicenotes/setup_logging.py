import logging, sys

# Libraries whose INFO/DEBUG output drowns ours
NOISY = ("urllib3", "charset_normalizer")

def setup_logging(level: str = "INFO", stream=None):
    """One stdout handler on the root logger. Does nothing if something configured logging already."""
    root = logging.getLogger()
    if root.handlers:  # pytest, or an embedding app
        return
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s :: %(message)s"))
    root.addHandler(handler)
    if root.level > logging.DEBUG:
        for name in NOISY:
            logging.getLogger(name).setLevel(logging.WARNING)

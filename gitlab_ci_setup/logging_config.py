import logging
from pathlib import Path

LOG_PATH = Path.cwd() / "logs"
LOG_FILE = LOG_PATH / "ci_setup.log"


class _LazyFileHandler(logging.FileHandler):
    """FileHandler that creates its directory when the first record is written."""

    def __init__(self, filename: Path, encoding: str = "utf-8"):
        super().__init__(filename, encoding=encoding, delay=True)

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()


def get_logger(name: str = "ci_setup", log_file: Path = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    fh = _LazyFileHandler(Path(log_file) if log_file else LOG_FILE)
    fh.setFormatter(fmt)
    logger.addHandler(fh)
    # also add a stream handler for interactive runs
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    logger.addHandler(sh)
    return logger


def set_verbose(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.name.startswith("gitlab_ci_setup"):
            logger.setLevel(level)

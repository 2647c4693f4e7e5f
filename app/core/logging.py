import logging
import sys

# atributos que todo LogRecord já tem; o resto veio via `extra=`
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "extra"}


class ExtraFieldsFormatter(logging.Formatter):
    """
    Formatter que junta os campos passados em `extra=` num dict
    e renderiza no fim da linha.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.extra = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED
        }
        return super().format(record)


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)

    formatter = ExtraFieldsFormatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s | %(extra)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

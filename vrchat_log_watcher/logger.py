import functools
import gzip
import inspect
import logging
import logging.handlers
import shutil
import sys
from pathlib import Path
from typing import Callable, ParamSpec, TypeVar

from .config import Settings, settings

logger = logging.getLogger("vrchat_log_watcher")
logger.setLevel(settings.log_level.upper())
formatter = logging.Formatter(
    "%(asctime)s %(levelname)s [%(module)s:%(funcName)s:%(lineno)d] %(message)s"
)

LOG_FILE_NAME = "vrchat_log_watcher.log"

P = ParamSpec("P")
R = TypeVar("R")


def rotator(source: str, dest: str) -> None:
    """Gzip a file rolled over by TimedRotatingFileHandler to ``dest.gz``."""
    source_path = Path(source)
    with source_path.open("rb") as raw, gzip.open(f"{dest}.gz", "wb") as packed:
        shutil.copyfileobj(raw, packed)
    source_path.unlink()


def setup_handlers(target: logging.Logger, config: Settings) -> list[logging.Handler]:
    """Attach the handlers enabled in config to target and return them.

    Nothing is attached unless ``console_logging`` or ``logs_dir`` is set, so
    records only propagate to whatever the application configured.
    """
    handlers: list[logging.Handler] = []

    if config.logs_dir is not None:
        config.logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            config.logs_dir / LOG_FILE_NAME, when="midnight"
        )
        file_handler.rotator = rotator
        handlers.append(file_handler)

    if config.console_logging:
        handlers.append(logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setFormatter(formatter)
        target.addHandler(handler)
    return handlers


setup_handlers(logger, settings)


def _describe_arguments(
    sig: inspect.Signature, func_name: str, args: tuple, kwargs: dict
) -> tuple[dict, str]:
    """Bind a call's arguments. Returns them with a ``[name=value, ...] `` tag."""
    try:
        bound = sig.bind(*args, **kwargs)
    except TypeError as e:
        logger.warning(
            f"Failed to bind arguments for function {func_name}: {e}",
            stacklevel=3,
        )
        raw = [
            f"{label}={value!r}"
            for label, value in (("args", args), ("kwargs", kwargs))
            if value
        ]
        return {}, f"[{', '.join(raw)}] " if raw else ""

    bound.apply_defaults()
    rendered = ", ".join(f"{name}={value!r}" for name, value in bound.arguments.items())
    return bound.arguments, f"[{rendered}] " if rendered else ""


def _format_prefix(prefix: str, arguments: dict) -> str:
    if not prefix:
        return ""
    if "{" in prefix and "}" in prefix:
        try:
            return f"{prefix.format_map(arguments)}: "
        except (KeyError, ValueError, AttributeError, IndexError) as e:
            logger.warning(
                f"Failed to format prefix '{prefix}' with arguments: {e}",
                stacklevel=3,
            )
    return f"{prefix}: "


def log_exception(
    prefix: str = "",
    default_return: R | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator that logs any exception raised by the wrapped function and
    returns ``default_return`` instead of propagating it.

    Works for sync and async callables. The prefix may reference the wrapped
    function's parameters with ``str.format`` braces, e.g.
    ``"Listener failed for {event_type}"``.

    Usage:
        @log_exception("Parsing location {location}")
        def parse(location: str) -> ParsedLocation | None:
            ...
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        sig = inspect.signature(func)
        func_name = func.__qualname__

        def log_failure(e: Exception, args: tuple, kwargs: dict) -> None:
            arguments, tag = _describe_arguments(sig, func_name, args, kwargs)
            logger.error(
                f"{tag}{_format_prefix(prefix, arguments)}{type(e).__name__}: {e}",
                exc_info=True,
                stacklevel=3,
            )

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    log_failure(e, args, kwargs)
                    return default_return  # type: ignore[return-value]

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                log_failure(e, args, kwargs)
                return default_return  # type: ignore[return-value]

        return sync_wrapper  # type: ignore[return-value]

    return decorator

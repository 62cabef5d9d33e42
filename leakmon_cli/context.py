# leakmon_cli/context.py
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO, Union

from .alerts import AlertLogger, select_styler, terminate
from .cloner import GitCloner
from .config import AppConfig
from .dispatcher import SignatureDispatcher
from .findings import CsvFindingWriter, NullFindingWriter
from .notifications import NotificationManager
from .signatures import Signature, load_signatures


@dataclass
class AppContext:
    """Everything the workers share. Built once at startup and read-only afterwards."""
    config: AppConfig
    log: AlertLogger
    notifier: NotificationManager
    signatures: List[Signature]
    writer: Union[CsvFindingWriter, NullFindingWriter]
    dispatcher: SignatureDispatcher
    cloner: GitCloner


def build_alert_logger(config: AppConfig, stream: Optional[TextIO] = None,
                       exit_func: Callable[[int], None] = terminate) -> AlertLogger:
    """Console logger wired to the configured alert channels (if any)."""
    stream = stream if stream is not None else sys.stdout
    general = config.general
    log = AlertLogger(
        stream=stream,
        styler=select_styler(stream, general.color),
        debug=general.debug,
        silent=general.silent,
        exit_func=exit_func,
    )
    notifier = NotificationManager(config.notifications, log, timeout=config.github.request_timeout)
    if notifier.enabled:
        log.notifier = notifier
    return log


def build_context(config: AppConfig, stream: Optional[TextIO] = None,
                  exit_func: Callable[[int], None] = terminate,
                  log: Optional[AlertLogger] = None) -> AppContext:
    """
    Wire up logger, alert channels, signatures, findings sink and dispatcher.

    Raises:
        SignatureError: if a configured signature does not compile.
    """
    general = config.general
    if log is None:
        log = build_alert_logger(config, stream, exit_func)
    notifier = log.notifier or NotificationManager(config.notifications, log,
                                                   timeout=config.github.request_timeout)

    signatures = load_signatures(config.signatures)
    writer = CsvFindingWriter(general.csv_path) if general.csv_path else NullFindingWriter()
    dispatcher = SignatureDispatcher(signatures, config.scan, log, writer)

    return AppContext(
        config=config,
        log=log,
        notifier=notifier,
        signatures=signatures,
        writer=writer,
        dispatcher=dispatcher,
        cloner=GitCloner(timeout=general.clone_timeout),
    )

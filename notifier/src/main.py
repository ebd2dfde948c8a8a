"""Main entry point for the notification worker."""

import signal
import sys
import threading

import structlog
from prometheus_client import start_http_server

from shared.logging import configure_logging
from shared.tracing import configure_tracing, shutdown_tracing

from notifier.src.config import get_config
from notifier.src.container import build_notification_system

logger = structlog.get_logger(__name__)


def main():
    """Main entry point."""
    config = get_config()

    configure_logging(
        log_level=config.log_level,
        json_logs=config.log_format == "json",
        service_name=config.service_name,
        environment=config.environment,
    )

    logger.info(
        "notifier_starting",
        service_name=config.service_name,
        supabase_url=config.supabase.url,
        check_interval_seconds=config.jobs.check_interval_seconds,
        language=config.notifications.language,
    )

    if config.tracing_enabled:
        configure_tracing(
            service_name=config.service_name,
            otlp_endpoint=config.tracing_otlp_endpoint,
            sampling_rate=config.tracing_sample_rate,
        )

    stop_requested = threading.Event()

    def handle_signal(signum, frame):
        logger.info("shutdown_signal_received", signal=signum)
        stop_requested.set()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    try:
        start_http_server(config.metrics_port)
        system = build_notification_system(config)

        if config.supabase.service_email and config.supabase.service_password:
            system.session_user.sign_in(config.supabase.service_email, config.supabase.service_password)

        system.background_jobs.start()
        stop_requested.wait()
        system.background_jobs.stop()
        # The schedule lives in this process only
        system.notification_service.cancel_all()

    except Exception as e:
        logger.error("fatal_error", error=str(e), exc_info=True)
        sys.exit(1)

    finally:
        shutdown_tracing()

    logger.info("notifier_stopped")


if __name__ == "__main__":
    main()

"""
Main application entry point for CertWatch.
Handles application initialization, service wiring, and graceful shutdown.
"""

import argparse
import logging
import os
import signal
import sys
from typing import Optional

from .app import CertWatchApp
from .certificates import CertificateDecoder, display_urgency
from .models.database import DatabaseManager
from .services.certificate_service import CertificateService
from .services.config_service import ConfigService
from .services.logging_service import LoggingService


class CertWatchApplication:
    """Main application class for the certificate tracker."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the application.

        Args:
            config_path: Path to configuration file (optional)
        """
        self.config_path = config_path or self._get_default_config_path()
        self.logger = logging.getLogger(__name__)
        self.config_service = None
        self.config = None
        self.logging_service = None
        self.db_manager = None
        self.certificate_service = None
        self.flask_app = None
        self._is_running = False

    def _get_default_config_path(self) -> str:
        """Get the default configuration file path."""
        possible_paths = [
            "config/certwatch.properties",
            "certwatch.properties",
            os.path.expanduser("~/.certwatch/config.properties"),
            "/etc/certwatch/config.properties"
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        return possible_paths[0]

    def _setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received {signal.Signals(signum).name} signal, initiating graceful shutdown...")
            self.shutdown()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def initialize(self) -> bool:
        """
        Initialize all application components.

        Returns:
            True if initialization successful, False otherwise
        """
        try:
            if not self._load_configuration():
                return False

            self.logging_service = LoggingService(self.config)
            self.logger.info("Starting CertWatch initialization...")

            self.db_manager = DatabaseManager(self.config.database_path)
            self.db_manager.create_tables()
            self.logger.info(f"Database initialized: {self.db_manager.database_url}")

            self.certificate_service = CertificateService(
                self.db_manager,
                self.config.upload_dir,
                decoder=CertificateDecoder(logger=logging.getLogger('certwatch.decoder')),
                logging_service=self.logging_service
            )

            self.flask_app = CertWatchApp(
                self.config_service,
                logging_service=self.logging_service,
                certificate_service=self.certificate_service
            )

            self._setup_signal_handlers()
            self.logger.info("CertWatch initialized successfully")
            self._is_running = True
            return True

        except Exception as e:
            self.logger.error(f"Failed to initialize application: {str(e)}", exc_info=True)
            return False

    def _load_configuration(self) -> bool:
        """Load application configuration, writing a default file on first run."""
        self.config_service = ConfigService()

        if not os.path.exists(self.config_path):
            self.logger.warning(f"Configuration file not found: {self.config_path}")
            self.config_service.create_default_config_file(self.config_path)
            self.logger.warning(f"Default configuration created at: {self.config_path}")
            self.logger.warning("Please edit the configuration file and restart the application")
            return False

        try:
            self.config = self.config_service.load_config(self.config_path)
        except (ValueError, FileNotFoundError) as e:
            self.logger.error(f"Failed to load configuration: {str(e)}")
            return False

        for directory in (os.path.dirname(self.config.database_path), self.config.upload_dir):
            if directory:
                os.makedirs(directory, exist_ok=True)

        return True

    def run(self, host: str = '0.0.0.0', port: Optional[int] = None, debug: bool = False):
        """Run the web API until interrupted."""
        if not self._is_running:
            self.logger.error("Application not initialized. Call initialize() first.")
            return

        try:
            self.flask_app.run(host=host, port=port, debug=debug)
        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt")
        finally:
            self.shutdown()

    def shutdown(self):
        """Perform graceful shutdown of the application."""
        if not self._is_running:
            return

        self.logger.info("Initiating graceful shutdown...")
        self._is_running = False

        if self.db_manager:
            self.db_manager.close()
            self.logger.info("Database connections closed")

        self.logger.info("Graceful shutdown completed")


def inspect_certificate(path: str, password: Optional[str] = None) -> int:
    """Decode a certificate file and print its metadata. Returns an exit code."""
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        print(f"Error: cannot read {path}: {e}")
        return 1

    result = CertificateDecoder().decode(data, os.path.basename(path), password)
    if not result.ok:
        print(f"Error: {result.error.message}")
        return 1

    info = result.info
    urgency = display_urgency(info.valid_to)
    print(f"Common name:         {info.common_name}")
    print(f"Organization:        {info.organization}")
    print(f"Organizational unit: {info.organizational_unit}")
    print(f"Issuer:              {info.issuer}")
    print(f"Serial number:       {info.serial_number}")
    print(f"Valid from:          {info.valid_from.isoformat()}")
    print(f"Valid to:            {info.valid_to.isoformat()}")
    print(f"Days remaining:      {info.days_remaining}")
    print(f"Status:              {info.status.value} ({urgency.label})")
    return 0


def main():
    """Main entry point for the application."""
    parser = argparse.ArgumentParser(description='CertWatch certificate expiry tracker')
    parser.add_argument('--config', '-c', help='Configuration file path')
    parser.add_argument('--host', default='0.0.0.0', help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, help='Port to bind to (uses config if not specified)')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    parser.add_argument('--check-config', action='store_true', help='Check configuration and exit')
    parser.add_argument('--inspect', metavar='FILE', help='Decode a certificate file and exit')
    parser.add_argument('--password', help='Passphrase used with --inspect')

    args = parser.parse_args()

    if args.inspect:
        logging.basicConfig(level=logging.WARNING, format='%(levelname)s - %(message)s')
        sys.exit(inspect_certificate(args.inspect, args.password))

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    app = CertWatchApplication(config_path=args.config)

    if not app.initialize():
        print("Failed to initialize application")
        sys.exit(1)

    if args.check_config:
        print("Configuration check passed")
        print(f"Config path: {app.config_path}")
        print(f"Database path: {app.config.database_path}")
        print(f"Upload directory: {app.config.upload_dir}")
        app.shutdown()
        sys.exit(0)

    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()

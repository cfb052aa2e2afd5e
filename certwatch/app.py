"""
Flask application exposing the certificate tracking API.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from urllib.parse import quote

from flask import Flask, request, jsonify, g, session, Response

from .certificates import classify, display_urgency
from .certificates.status import describe_days_remaining, status_class, status_text, utcnow
from .models.database import DatabaseManager, Certificate
from .security import BasicAuthenticator, setup_authentication, require_authentication, SESSION_USER_KEY
from .services.certificate_service import CertificateService, CertificateUploadError
from .services.config_service import ConfigService


MAX_WINDOW_DAYS = 36500


def serialize_certificate(certificate: Certificate, now: Optional[datetime] = None) -> Dict[str, Any]:
    """JSON view of a stored certificate with its derived display fields."""
    now = now or utcnow()
    snapshot = classify(certificate.valid_to, now)
    urgency = display_urgency(certificate.valid_to, now)

    return {
        'id': certificate.id,
        'filename': certificate.filename,
        'original_name': certificate.original_name,
        'common_name': certificate.common_name,
        'organization': certificate.organization,
        'organizational_unit': certificate.organizational_unit,
        'issuer': certificate.issuer,
        'serial_number': certificate.serial_number,
        'valid_from': certificate.valid_from.isoformat() if certificate.valid_from else None,
        'valid_to': certificate.valid_to.isoformat() if certificate.valid_to else None,
        'file_type': certificate.file_type,
        'type': certificate.type,
        'description': certificate.description,
        'uploaded_at': certificate.uploaded_at.isoformat() if certificate.uploaded_at else None,
        'status': snapshot.status.value,
        'days_remaining': snapshot.days_remaining,
        'days_remaining_text': describe_days_remaining(certificate.valid_to, now),
        'status_text': status_text(certificate.valid_to, now),
        'status_class': status_class(certificate.valid_to, now),
        'urgency': {
            'level': urgency.urgency.value,
            'label': urgency.label,
            'class_name': urgency.class_name
        }
    }


class CertWatchApp:
    """Flask application serving the certificate API."""

    def __init__(self, config_service: ConfigService, logging_service=None,
                 certificate_service: Optional[CertificateService] = None):
        """Initialize the Flask application and its services."""
        self.app = Flask(__name__)
        self.config_service = config_service
        self.config = config_service.get_config()
        self.logging_service = logging_service
        self.logger = logging.getLogger(__name__)

        self.app.secret_key = self.config.secret_key or secrets.token_hex(32)
        self.app.permanent_session_lifetime = timedelta(hours=self.config.session_lifetime_hours)
        self.app.config['MAX_CONTENT_LENGTH'] = self.config.max_upload_bytes

        if certificate_service is None:
            self.db_manager = DatabaseManager(self.config.database_path)
            self.db_manager.create_tables()
            certificate_service = CertificateService(
                self.db_manager,
                self.config.upload_dir,
                logging_service=self.logging_service
            )
        self.certificate_service = certificate_service

        self.authenticator = BasicAuthenticator(self.config)
        setup_authentication(self.app, self.authenticator)

        self._setup_routes()
        self._setup_error_handlers()
        self._setup_security_headers()

    def _setup_routes(self):
        """Set up API routes."""

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint, available without authentication."""
            health_status = {
                'status': 'healthy',
                'service': 'certwatch',
                'timestamp': datetime.now().isoformat()
            }

            if self.logging_service:
                health_status['logging'] = self.logging_service.get_health_status()

            return jsonify(health_status)

        @self.app.route('/api/auth/login', methods=['POST'])
        def login():
            """Start a session for the configured API user."""
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                data = {}
            username = data.get('username')
            password = data.get('password')

            if not self.authenticator.check_credentials(username, password):
                self.logger.warning(f"Failed login attempt for user '{username}'")
                return jsonify({
                    'error': 'Invalid credentials',
                    'message': 'Username or password is incorrect'
                }), 401

            session.permanent = True
            session[SESSION_USER_KEY] = username
            self.logger.info(f"User '{username}' logged in")
            return jsonify({'success': True, 'user': username})

        @self.app.route('/api/auth/logout', methods=['POST'])
        def logout():
            session.pop(SESSION_USER_KEY, None)
            return jsonify({'success': True})

        @self.app.route('/api/certificates', methods=['GET'])
        @require_authentication
        def get_certificates():
            """List all certificates, soonest expiry first."""
            now = utcnow()
            certificates = self.certificate_service.get_all_certificates()
            return jsonify({
                'certificates': [serialize_certificate(c, now) for c in certificates],
                'count': len(certificates)
            })

        @self.app.route('/api/certificates/expiring', methods=['GET'])
        @require_authentication
        def get_expiring_certificates():
            """List certificates expiring within ?days= (default from config)."""
            days = self._parse_days_argument()
            if days is None:
                return jsonify({
                    'error': 'Invalid days',
                    'message': f'days must be an integer between 0 and {MAX_WINDOW_DAYS}'
                }), 400

            now = utcnow()
            certificates = self.certificate_service.get_expiring_certificates(days, now=now)
            return jsonify({
                'certificates': [serialize_certificate(c, now) for c in certificates],
                'count': len(certificates),
                'days': days
            })

        @self.app.route('/api/certificates/<int:certificate_id>', methods=['GET'])
        @require_authentication
        def get_certificate(certificate_id):
            certificate = self.certificate_service.get_certificate(certificate_id)
            if not certificate:
                return self._not_found(certificate_id)
            return jsonify({'certificate': serialize_certificate(certificate)})

        @self.app.route('/api/certificates/upload', methods=['POST'])
        @require_authentication
        def upload_certificate():
            """Upload a certificate file with an optional passphrase."""
            upload = request.files.get('certificate')
            if upload is None or not upload.filename:
                return jsonify({
                    'error': 'Invalid request',
                    'message': 'No file uploaded'
                }), 400

            password = request.form.get('password') or None
            data = upload.read()

            try:
                certificate = self.certificate_service.upload_certificate(
                    data, upload.filename, password, mimetype=upload.mimetype
                )
            except CertificateUploadError as e:
                return jsonify({
                    'error': 'Invalid certificate',
                    'message': str(e)
                }), 400

            self.logger.info(f"Certificate {certificate.id} uploaded by {g.user}")
            return jsonify({
                'message': 'Certificate uploaded successfully',
                'certificate': serialize_certificate(certificate)
            }), 201

        @self.app.route('/api/certificates/verify-password', methods=['POST'])
        @require_authentication
        def verify_password():
            """Check whether a passphrase opens an upload, without storing it."""
            upload = request.files.get('certificate')
            if upload is None or not upload.filename:
                return jsonify({
                    'error': 'Invalid request',
                    'message': 'No file uploaded'
                }), 400

            is_valid = self.certificate_service.verify_certificate_password(
                upload.read(), upload.filename, request.form.get('password') or None
            )
            return jsonify({'success': True, 'is_valid': is_valid})

        @self.app.route('/api/certificates/<int:certificate_id>', methods=['DELETE'])
        @require_authentication
        def delete_certificate(certificate_id):
            if not self.certificate_service.get_certificate(certificate_id):
                return self._not_found(certificate_id)

            success = self.certificate_service.delete_certificate(certificate_id)
            return jsonify({'success': success})

        @self.app.route('/api/certificates/<int:certificate_id>/download', methods=['GET'])
        @require_authentication
        def download_certificate(certificate_id):
            certificate_file = self.certificate_service.get_certificate_file(certificate_id)
            if not certificate_file:
                return jsonify({
                    'error': 'Certificate not found',
                    'message': f'Certificate file for ID {certificate_id} not found'
                }), 404

            response = Response(certificate_file.data, mimetype=certificate_file.mimetype)
            response.headers['Content-Disposition'] = (
                f'attachment; filename="{quote(certificate_file.original_name)}"'
            )
            return response

        @self.app.route('/api/dashboard', methods=['GET'])
        @require_authentication
        def dashboard():
            """Status counts and the certificates expiring soon."""
            days = self._parse_days_argument()
            if days is None:
                return jsonify({
                    'error': 'Invalid days',
                    'message': f'days must be an integer between 0 and {MAX_WINDOW_DAYS}'
                }), 400

            now = utcnow()
            summary = self.certificate_service.get_dashboard_summary(days, now=now)
            return jsonify({
                'total': summary['total'],
                'counts': summary['counts'],
                'expiring_soon': [serialize_certificate(c, now) for c in summary['expiring_soon']],
                'days': days
            })

        @self.app.route('/api/monitoring/metrics', methods=['GET'])
        @require_authentication
        def get_performance_metrics():
            if not self.logging_service:
                return jsonify({'error': 'Logging service not available'}), 503

            operation = request.args.get('operation')
            return jsonify({
                'metrics': self.logging_service.get_performance_stats(operation),
                'timestamp': datetime.now().isoformat()
            })

    def _parse_days_argument(self) -> Optional[int]:
        raw_days = request.args.get('days')
        if raw_days is None or raw_days == '':
            return self.config.expiring_days_default
        try:
            days = int(raw_days)
        except ValueError:
            return None
        if days < 0 or days > MAX_WINDOW_DAYS:
            return None
        return days

    def _not_found(self, certificate_id: int):
        return jsonify({
            'error': 'Certificate not found',
            'message': f'Certificate with ID {certificate_id} does not exist'
        }), 404

    def _setup_error_handlers(self):
        """Set up error handlers."""

        @self.app.errorhandler(404)
        def not_found(error):
            return jsonify({
                'error': 'Not found',
                'message': 'The requested endpoint does not exist'
            }), 404

        @self.app.errorhandler(405)
        def method_not_allowed(error):
            return jsonify({
                'error': 'Method not allowed',
                'message': 'The requested method is not allowed for this endpoint'
            }), 405

        @self.app.errorhandler(413)
        def payload_too_large(error):
            return jsonify({
                'error': 'File too large',
                'message': f'Uploads are limited to {self.config.max_upload_bytes} bytes'
            }), 413

        @self.app.errorhandler(500)
        def internal_error(error):
            self.logger.error(f"Internal server error: {error}")
            return jsonify({
                'error': 'Internal server error',
                'message': 'An unexpected error occurred'
            }), 500

    def _setup_security_headers(self):
        """Set up security headers for all responses."""

        @self.app.after_request
        def add_security_headers(response):
            response.headers['X-Content-Type-Options'] = 'nosniff'
            response.headers['X-Frame-Options'] = 'DENY'
            response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
            response.headers['Cache-Control'] = 'no-store'
            return response

    def run(self, host: str = '0.0.0.0', port: Optional[int] = None, debug: bool = False):
        """Run the Flask development server."""
        if port is None:
            port = self.config.api_port

        self.logger.info(f"Starting CertWatch API on http://{host}:{port}")
        self.app.run(host=host, port=port, debug=debug)

    def get_app(self) -> Flask:
        """Get the Flask application instance."""
        return self.app

"""Django management command to run the API server."""

import logging
from typing import Any, final, override

from cheroot.wsgi import Server as WSGIServer
from django.conf import settings
from django.core.management.base import BaseCommand
from django.core.wsgi import get_wsgi_application

logger = logging.getLogger(__name__)


@final
class Command(BaseCommand):
    """Run the JSON API using the cheroot WSGI server."""

    help = 'Run the file storage API server'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--host',
            type=str,
            default=None,
            help='Host to bind to (default: API_HOST setting)',
        )
        parser.add_argument(
            '--port',
            type=int,
            default=None,
            help='Port to bind to (default: PORT setting)',
        )
        parser.add_argument(
            '--threads',
            type=int,
            default=10,
            help='Worker threads (default: 10)',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments.
            options: Keyword arguments from command line.
        """
        host = options['host'] or settings.API_HOST
        port = options['port'] or settings.API_PORT

        self.stdout.write(
            self.style.SUCCESS(f'Starting API server on {host}:{port}'),
        )

        server = WSGIServer(
            bind_addr=(host, port),
            wsgi_app=get_wsgi_application(),
            numthreads=options['threads'],
        )

        # Set server name for HTTP headers
        server.server_name = 'Drive-API'

        try:
            logger.info('API server starting on %s:%d', host, port)
            server.start()
        except KeyboardInterrupt:
            self.stdout.write(self.style.WARNING('\nShutting down...'))
        finally:
            server.stop()
            self.stdout.write(self.style.SUCCESS('API server stopped'))

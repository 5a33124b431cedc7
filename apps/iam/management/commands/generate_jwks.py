"""
Management command to generate the RS256 signing key pair.

Writes the public and private JWKs to IAM_JWK_PUBLIC_KEY_PATH and
IAM_JWK_PRIVATE_KEY_PATH (or the paths given on the command line).
"""
import json
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.iam.tokens import generate_jwk_pair


class Command(BaseCommand):
    help = 'Generate an RSA JWK pair for signing refresh and access tokens'

    def add_arguments(self, parser):
        parser.add_argument(
            '--public',
            type=str,
            default=None,
            help='Output path for the public JWK (default: IAM_JWK_PUBLIC_KEY_PATH)',
        )
        parser.add_argument(
            '--private',
            type=str,
            default=None,
            help='Output path for the private JWK (default: IAM_JWK_PRIVATE_KEY_PATH)',
        )
        parser.add_argument(
            '--kid',
            type=str,
            default=None,
            help='Key id to embed in both keys (default: random)',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Overwrite existing key files',
        )

    def handle(self, *args, **options):
        public_path = self._resolve(options['public'] or settings.IAM_JWK_PUBLIC_KEY_PATH)
        private_path = self._resolve(options['private'] or settings.IAM_JWK_PRIVATE_KEY_PATH)

        if not options['force']:
            existing = [str(p) for p in (public_path, private_path) if p.exists()]
            if existing:
                raise CommandError(
                    f"Key file already exists: {', '.join(existing)}. Use --force to overwrite."
                )

        public_jwk, private_jwk = generate_jwk_pair(kid=options['kid'])

        for path, data in ((public_path, public_jwk), (private_path, private_jwk)):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2), encoding='utf-8')

        private_path.chmod(0o600)

        self.stdout.write(self.style.SUCCESS(f"Generated JWK pair (kid={public_jwk['kid']})"))
        self.stdout.write(f"  public:  {public_path}")
        self.stdout.write(f"  private: {private_path}")

    @staticmethod
    def _resolve(path):
        if not path:
            raise CommandError('Key path not configured. Set IAM_JWK_*_KEY_PATH or pass --public/--private.')
        path = Path(path)
        if not path.is_absolute():
            path = Path(settings.BASE_DIR) / path
        return path

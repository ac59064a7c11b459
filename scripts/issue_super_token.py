#!/usr/bin/env python3
"""Issue a super-principal token.

Signs the current unix timestamp with AUTHZ_SUPER_ADMIN_SECRET and prints
the token to set as the super-principal cookie. Tokens are only ever
issued out-of-band with this script.
"""

import sys

from authz.config.settings import get_settings
from authz.security import issue_super_token


def main() -> int:
    settings = get_settings()
    if not settings.super_admin_secret:
        print("AUTHZ_SUPER_ADMIN_SECRET is not set", file=sys.stderr)
        return 1

    token = issue_super_token(settings.super_admin_secret)
    hours = settings.super_token_max_age_seconds // 3600
    print(f"Cookie name: {settings.super_cookie_name}")
    print(f"Valid for:   {hours}h")
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())

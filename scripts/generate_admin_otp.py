"""Issue an admin-generated OTP for a paid app (support / manual relay)."""
import argparse
import asyncio
import sys

from src.app.config import settings
from src.app.logging_config import setup_logging
from src.core.registry import get_app_config, requires_payment
from src.db.base import SessionLocal
from src.services.messaging import NotificationService, OTPService
from src.utils.validators import ValidationError


async def generate(args: argparse.Namespace) -> int:
    app = get_app_config(args.app_id)
    if app is None or not requires_payment(args.app_id):
        print(f"✖ {args.app_id} is not a paid app")
        return 1

    db = SessionLocal()
    try:
        service = OTPService(
            db=db,
            notifier=NotificationService.from_settings(settings),
            otp_secret=settings.resolve_otp_secret(),
        )
        result = await service.generate_and_dispatch_otp(
            email=args.email,
            phone=args.phone,
            app_id=app.id,
            app_name=app.name,
            user_id=args.user_id,
            reason=args.reason,
            admin_generated=True,
        )
    except ValidationError as exc:
        print(f"✖ {exc}")
        return 1
    finally:
        db.close()

    print(f"➕ {result.message} (expires {result.expires_at:%Y-%m-%d %H:%M} UTC)")
    return 0


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", required=True)
    parser.add_argument("--app-id", required=True)
    parser.add_argument("--phone")
    parser.add_argument("--user-id")
    parser.add_argument("--reason", default="admin_manual")
    args = parser.parse_args()

    setup_logging(settings)
    sys.exit(asyncio.run(generate(args)))


if __name__ == "__main__":
    main()

"""Grant or revoke app access for a user from the command line."""
import argparse

from src.app.logging_config import setup_logging
from src.db.base import SessionLocal
from src.models.enums import GrantedVia
from src.services.access import EntitlementWriter


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    grant = sub.add_parser("grant", help="unlock an app (and its bundle) for a user")
    grant.add_argument("--user-id", required=True)
    grant.add_argument("--app-id", required=True)
    grant.add_argument("--payment-id")
    grant.add_argument("--admin", action="store_true", help="record as an admin grant, without bundle-mates")

    revoke = sub.add_parser("revoke", help="deactivate a user's access to one app")
    revoke.add_argument("--user-id", required=True)
    revoke.add_argument("--app-id", required=True)
    revoke.add_argument("--reason", default="manual")

    args = parser.parse_args()
    setup_logging()

    db = SessionLocal()
    try:
        writer = EntitlementWriter(db)
        if args.command == "grant" and args.admin:
            writer.grant_app_access(args.user_id, args.app_id, GrantedVia.admin, payment_id=args.payment_id)
            print(f"➕ Granted {args.app_id} to {args.user_id} (admin)")
        elif args.command == "grant":
            result = writer.grant_bundle_access(args.user_id, args.app_id, payment_id=args.payment_id)
            print(f"➕ Granted {', '.join(result.bundled_apps)} to {args.user_id}")
        elif writer.revoke_app_access(args.user_id, args.app_id, args.reason):
            print(f"🚫 Revoked {args.app_id} for {args.user_id}")
        else:
            print(f"✔ No access row for {args.app_id} / {args.user_id}")
    finally:
        db.close()


if __name__ == "__main__":
    main()

import sys

from inbox_reader.config import configure_logging, settings
from inbox_reader.errors import Unauthenticated
from inbox_reader.factories import build_auth_service, build_fetcher


def main():
    configure_logging()
    max_emails = int(sys.argv[1]) if len(sys.argv) > 1 else settings.max_emails

    auth = build_auth_service()
    fetcher = build_fetcher(auth)

    try:
        subjects = fetcher.fetch_recent_subjects(max_emails)
    except Unauthenticated:
        print("Not signed in. Run scripts/auth_gmail_local.py first.")
        sys.exit(1)

    if not subjects:
        print("No emails found")
        return

    for i, subject in enumerate(subjects, start=1):
        print(f"{i}. Subject: {subject}")

if __name__ == "__main__":
    main()

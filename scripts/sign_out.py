from inbox_reader.config import configure_logging
from inbox_reader.factories import build_auth_service


def main() -> None:
    configure_logging()
    build_auth_service().sign_out()
    print("✅ Signed out; cached tokens cleared")

if __name__ == "__main__":
    main()

from inbox_reader.config import configure_logging
from inbox_reader.factories import build_auth_service


def main() -> None:
    configure_logging()
    auth = build_auth_service()

    session = auth.sign_in()
    if session is None:
        print("Sign-in cancelled or failed")
        return

    print(f"✅ Signed in as: {session.email() or '(unknown)'}")
    print(f"✅ Saved session to: {auth.identity.token_path}")

if __name__ == "__main__":
    main()

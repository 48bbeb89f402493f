from clinic.app_factory import create_app


if __name__ == "__main__":
    """
    Entrypoint for the clinic portal REST API.
    Use `flask --app clinic.app_factory create-admin` to seed an admin account.
    """
    app = create_app()
    app.run(host="0.0.0.0", port=5001, debug=app.config.get("DEBUG", False))

from nbaltcheck.cli import app

app()

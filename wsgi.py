from persona import create_app

app = create_app()

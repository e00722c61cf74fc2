from app.newsdesk import create_app

app = create_app()

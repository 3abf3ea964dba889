# backend/wsgi.py
from tourops import create_app

app = create_app()

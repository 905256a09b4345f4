# backend/wsgi.py
from inventory_pro import create_app

app = create_app()

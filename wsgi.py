"""WSGI entry point: gunicorn wsgi:app"""
import os

from marketplace import create_app

app = create_app('config.Config')

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.getenv('PORT', '5000')))

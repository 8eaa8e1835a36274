"""
Elastic Beanstalk entry point for the electricity tracker API.

Beanstalk's WSGI server looks for a module-level `application`.
"""
from backend.app import app as application

# For local testing
if __name__ == "__main__":
    application.run(debug=True)

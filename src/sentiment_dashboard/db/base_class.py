from sqlalchemy.orm import declarative_base

# Declarative base shared by every ORM model of the application.
Base = declarative_base()

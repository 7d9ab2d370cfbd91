# calltrainer/db/create_tables.py
from calltrainer.db.session import engine
from calltrainer.db.models import Base

def create_tables(bind=engine) -> None:
    Base.metadata.create_all(bind=bind)

def main():
    print("Creating database tables...")
    create_tables()
    print("Done.")

if __name__ == "__main__":
    main()

"""Create the BandSet schema in the database named by ``DATABASE_URL``."""
from bandset.db import init_db


def main():
    init_db()


if __name__ == "__main__":
    main()

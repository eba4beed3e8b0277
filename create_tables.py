# create_tables.py
from llamaio.database import Base, engine
from llamaio.models import User, Task

def create_tables(drop_existing: bool = True):
    """Create all tables, dropping the existing ones first"""
    try:
        if drop_existing:
            Base.metadata.drop_all(bind=engine, tables=[Task.__table__, User.__table__])
            print("🗑️  Dropped existing users/tasks tables")

        Base.metadata.create_all(bind=engine)
        print(f"✅ All tables created successfully on {engine.url.render_as_string(hide_password=True)}")
        return True

    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        return False

if __name__ == "__main__":
    create_tables()

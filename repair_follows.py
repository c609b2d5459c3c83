from sqlmodel import Session
from app.db.session import engine, create_db_and_tables
from app.services.social import reconcile_follow_relations

def repair_follows():
    create_db_and_tables()
    with Session(engine) as session:
        repaired = reconcile_follow_relations(session)
    if repaired:
        print(f"Repaired {repaired} one-sided follow relation(s).")
    else:
        print("All follow relations are symmetric.")

if __name__ == "__main__":
    repair_follows()

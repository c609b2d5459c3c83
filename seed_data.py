from sqlmodel import Session, select
from app.db.session import engine, create_db_and_tables
from app.models.user import User
from app.models.blog import Blog, BlogStatus
from app.core.security import get_password_hash

DEMO_PASSWORD = "password123"

def seed_blogverse():
    print("Creating database and tables...")
    create_db_and_tables()

    with Session(engine) as session:
        # Check if users already exist to avoid duplicates
        existing_users = session.exec(select(User)).all()
        if existing_users:
            print(f"Database already contains {len(existing_users)} users. Skipping seed.")
            return

        print("Seeding demo users...")
        alice = User(
            name="Alice Writer",
            email="alice@example.com",
            password_hash=get_password_hash(DEMO_PASSWORD),
            bio="Writes about web development and design systems.",
            occupation="Frontend Engineer",
            social_links={"github": "https://github.com/alice"},
        )
        bob = User(
            name="Bob Reader",
            email="bob@example.com",
            password_hash=get_password_hash(DEMO_PASSWORD),
            bio="Mostly here for the Python posts.",
        )
        session.add(alice)
        session.add(bob)
        session.commit()
        session.refresh(alice)
        session.refresh(bob)

        # Bob follows Alice
        bob.following = [alice.id]
        alice.followers = [bob.id]
        session.add(alice)
        session.add(bob)

        print("Seeding demo blogs...")
        blogs = [
            Blog(
                user_id=alice.id,
                title="Getting Started with FastAPI",
                content="FastAPI makes building typed JSON APIs pleasant...",
                category="Tech",
                status=BlogStatus.PUBLISHED,
            ),
            Blog(
                user_id=alice.id,
                title="Why I Still Write SQL",
                content="ORMs are great until the query planner disagrees...",
                category="Tech",
                status=BlogStatus.PUBLISHED,
            ),
            Blog(
                user_id=alice.id,
                title="Spacing Scales in Design Systems",
                content="A consistent spacing scale removes a whole class of review comments...",
                category="Design",
                status=BlogStatus.PUBLISHED,
            ),
            Blog(
                user_id=alice.id,
                title="Unfinished Thoughts on Typography",
                content="Draft.",
                category="Design",
                status=BlogStatus.DRAFT,
            ),
        ]
        for blog in blogs:
            if blog.status == BlogStatus.PUBLISHED:
                blog.published_at = blog.created_at
            session.add(blog)

        session.commit()
        print(f"Seeded 2 users and {len(blogs)} blogs. Log in with {DEMO_PASSWORD!r}.")

if __name__ == "__main__":
    seed_blogverse()

"""
Demo data seeding script - demo users, each with the same set of
categories and tasks covering overdue, due-today, upcoming, completed and
in-progress cases
"""
import asyncio
from datetime import timedelta

from sqlalchemy import select

from taskmaster.api.auth import get_password_hash
from taskmaster.config import get_settings
from taskmaster.database import engine, Base, AsyncSessionLocal
from taskmaster.enums import TaskStatus, Priority
from taskmaster.models import User, Category, Task, TaskCategory
from taskmaster.utils.helpers import utcnow

settings = get_settings()

DEMO_USERS = [
    (settings.DEMO_USER_EMAIL, "Demo User"),
    ("john@taskmaster.com", "John Doe"),
    ("jane@taskmaster.com", "Jane Smith"),
]

CATEGORIES = [
    ("Work", "#EF4444"),
    ("Personal", "#3B82F6"),
    ("Shopping", "#10B981"),
    ("Health", "#F59E0B"),
    ("Learning", "#8B5CF6"),
    ("Travel", "#06B6D4"),
    ("Finance", "#84CC16"),
    ("Hobbies", "#F97316"),
]

# title, description, status, priority, due in days (None = no due date), categories
TASKS = [
    ("Submit quarterly report", "Compile and submit Q3 financial report to management",
     TaskStatus.IN_PROGRESS, Priority.HIGH, -2, ["Work"]),
    ("Doctor appointment", "Annual health checkup with Dr. Smith",
     TaskStatus.TODO, Priority.HIGH, 0, ["Health"]),
    ("Client presentation", "Present new product features to key client",
     TaskStatus.TODO, Priority.HIGH, 2, ["Work"]),
    ("Weekly grocery shopping", "Buy vegetables, fruits, dairy, and household essentials",
     TaskStatus.COMPLETED, Priority.MEDIUM, -1, ["Shopping", "Personal"]),
    ("Morning workout", "Complete 45-minute cardio and strength training session",
     TaskStatus.COMPLETED, Priority.MEDIUM, 0, ["Health", "Personal"]),
    ("Learn GraphQL subscriptions", "Study real-time GraphQL implementation and best practices",
     TaskStatus.IN_PROGRESS, Priority.MEDIUM, 7, ["Learning", "Work"]),
    ("Plan weekend getaway", "Research destinations, book accommodation, and create itinerary",
     TaskStatus.IN_PROGRESS, Priority.LOW, 5, ["Travel", "Personal"]),
    ("Review investment portfolio", "Analyze current investments and rebalance if necessary",
     TaskStatus.TODO, Priority.MEDIUM, 10, ["Finance", "Personal"]),
    ("Update personal website", "Add recent projects and update portfolio section",
     TaskStatus.TODO, Priority.LOW, 14, ["Personal", "Learning"]),
    ("Organize photo collection", "Sort and organize digital photos from last year",
     TaskStatus.TODO, Priority.LOW, None, ["Personal", "Hobbies"]),
    ("Code review for new feature", "Review pull request for user authentication feature",
     TaskStatus.TODO, Priority.HIGH, 1, ["Work"]),
    ("Buy birthday gift", "Find and purchase birthday gift for mom",
     TaskStatus.TODO, Priority.MEDIUM, 3, ["Shopping", "Personal"]),
    ("Practice guitar", "Practice new song for 30 minutes",
     TaskStatus.IN_PROGRESS, Priority.LOW, None, ["Hobbies", "Personal"]),
    ("Meal prep for week", "Prepare healthy meals for the upcoming week",
     TaskStatus.TODO, Priority.MEDIUM, 1, ["Health", "Personal"]),
    ("Complete online course", "Finish React Native advanced concepts course",
     TaskStatus.IN_PROGRESS, Priority.MEDIUM, 21, ["Learning", "Work"]),
]


async def seed_user(session, user: User):
    now = utcnow()
    today = now.date()

    categories = {}
    for name, color in CATEGORIES:
        category = Category(user_id=user.id, name=name, color=color, created_at=now)
        session.add(category)
        categories[name] = category
    await session.flush()

    for title, description, status, priority, due_in, names in TASKS:
        task = Task(
            user_id=user.id,
            title=title,
            description=description,
            status=status,
            priority=priority,
            due_date=today + timedelta(days=due_in) if due_in is not None else None,
            created_at=now,
            updated_at=now,
        )
        session.add(task)
        await session.flush()
        session.add_all([
            TaskCategory(task_id=task.id, category_id=categories[name].id) for name in names
        ])

    await session.flush()


async def seed_demo_users(session) -> list:
    """
    Create missing demo users and give every demo user without categories the
    demo data set. The server's startup creates the first demo account with no
    data, so an existing account is filled in rather than skipped.
    """
    seeded = []
    for email, full_name in DEMO_USERS:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(
                email=email,
                full_name=full_name,
                hashed_password=get_password_hash(settings.DEMO_USER_PASSWORD),
            )
            session.add(user)
            await session.flush()
        else:
            result = await session.execute(
                select(Category.id).where(Category.user_id == user.id).limit(1)
            )
            if result.first() is not None:
                print(f"  {email} already has data, skipping")
                continue

        await seed_user(session, user)
        seeded.append(email)
        print(f"  Seeded {email}: {len(CATEGORIES)} categories, {len(TASKS)} tasks")

    await session.commit()
    return seeded


async def seed_database():
    """Create tables, then demo users with categories and tasks"""
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables created")

    async with AsyncSessionLocal() as session:
        seeded = await seed_demo_users(session)

    print("\nSeeding complete!")
    if seeded:
        print("\nDemo logins:")
        for email in seeded:
            print(f"  Email: {email}  Password: {settings.DEMO_USER_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(seed_database())

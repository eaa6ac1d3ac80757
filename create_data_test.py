"""
Seed a development database with one account per role and the form lookup lists.
Usage: python create_data_test.py
"""
from ozifin.database import SessionLocal, engine
from ozifin.models import Base, Setting, User
from ozifin.security import get_password_hash

SEED_USERS = [
    ("admin", "admin123", "System Administrator", "admin"),
    ("manager", "manager123", "Quản lý", "manager"),
    ("sale1", "sale123", "Sale One", "sale"),
    ("sale2", "sale123", "Sale Two", "sale"),
]

SEED_SETTINGS = {
    "agency": ["Đại lý A", "Đại lý B"],
    "bank": ["Vietcombank", "Techcombank", "MB Bank", "VPBank"],
    "cardType": ["Visa", "Mastercard", "JCB"],
    "pos": ["POS 01", "POS 02"],
}

# Create tables if they don't exist
Base.metadata.create_all(bind=engine)

db = SessionLocal()

for username, password, display_name, role in SEED_USERS:
    if db.query(User).filter(User.username == username).first():
        continue
    db.add(User(
        username=username,
        password_hash=get_password_hash(password),
        display_name=display_name,
        role=role,
        is_active=True
    ))
    print(f"✅ Created {role} user: {username} / {password}")

for category, values in SEED_SETTINGS.items():
    for value in values:
        exists = db.query(Setting).filter(Setting.category == category, Setting.value == value).first()
        if not exists:
            db.add(Setting(category=category, value=value))

db.commit()
db.close()

print("\n✅ Seed data created successfully!")

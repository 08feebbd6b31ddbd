#!/usr/bin/env python3
"""
Demo Data Generator Script for the Costume Logistics System

This script populates the MongoDB database with demonstration costumes
and loans for testing and presentation purposes. Loans go through the
same ledger rules as the API, so availability is never exceeded.
"""

import asyncio
import sys
import random
from datetime import date, timedelta
from pathlib import Path

# Add parent directory to path so we can import from the main application
sys.path.append(str(Path(__file__).parent.parent))

from database.db import init_db
from services import ledger

# Configuration
NUM_LOANS = 12
RETURN_RATIO = 0.4

# Demo data
NAMES = {
    "first": ["James", "Mary", "John", "Patricia", "Robert", "Jennifer", "Michael", "Linda", "William", "Elizabeth",
              "David", "Barbara", "Richard", "Susan", "Joseph", "Jessica", "Thomas", "Sarah", "Charles", "Karen"],
    "last": ["Smith", "Johnson", "Williams", "Jones", "Brown", "Davis", "Miller", "Wilson", "Moore", "Taylor",
             "Anderson", "Thomas", "Jackson", "White", "Harris", "Martin", "Thompson", "Garcia", "Martinez", "Robinson"]
}

COSTUMES = [
    {"name": "Victorian Ball Gown", "category": "Dress", "size": "M", "color": "Burgundy", "quantity": 3},
    {"name": "Pirate Captain Coat", "category": "Outerwear", "size": "L", "color": "Black", "quantity": 2},
    {"name": "Angel Wings", "category": "Accessory", "size": "Free", "color": "White", "quantity": 10},
    {"name": "Roman Toga", "category": "Robe", "size": "Free", "color": "White", "quantity": 8},
    {"name": "Knight Helmet", "category": "Headwear", "size": "Free", "color": "Silver", "quantity": 4},
    {"name": "Flapper Dress", "category": "Dress", "size": "S", "color": "Gold", "quantity": 5},
    {"name": "Wizard Hat", "category": "Headwear", "size": "Free", "color": "Navy", "quantity": 6},
    {"name": "Barong Tagalog", "category": "Top", "size": "L", "color": "Cream", "quantity": 7},
    {"name": "Animal Mask Set", "category": "Accessory", "size": "Free", "color": "Mixed", "quantity": 12},
    {"name": "Military Jacket", "category": "Outerwear", "size": "M", "color": "Green", "quantity": 4},
]

LOCATIONS = ["Storage", "Rack A", "Rack B", "Cabinet 1", "Cabinet 2"]

DEPARTMENTS = ["Drama Club", "Dance Troupe", "Music Department", "Student Council", "Glee Club"]

PURPOSES = ["Event", "Rehearsal", "Photo Shoot", "School Play", "Parade"]

STAFF = ["Mr. Cruz", "Ms. Santos", "Mrs. Lim", "Mr. Reyes"]

RETURN_CONDITIONS = ["Good", "Good", "Good", "Needs Repair", "Damaged"]

# Helper functions
def random_name():
    """Generate a random full name."""
    first = random.choice(NAMES["first"])
    last = random.choice(NAMES["last"])
    return f"{first} {last}"

def random_date_between(start_date, end_date):
    """Generate a random date between two dates."""
    days_between = (end_date - start_date).days
    random_days = random.randint(0, days_between)
    return start_date + timedelta(days=random_days)

# Main data generation functions
async def create_demo_inventory():
    """Create the demo costume items."""
    print("Creating inventory...")
    items = []

    for costume in COSTUMES:
        item_data = {
            **costume,
            "condition": random.choice(["Good", "Good", "Fair"]),
            "location": random.choice(LOCATIONS),
            "notes": "",
        }
        item = await ledger.add_item(item_data)
        items.append(item)
        print(f"  Created item: {item['name']} ({item['quantity']} units)")

    return items

async def create_demo_loans(items):
    """Create loans, some of them overdue and some already returned."""
    print("Creating loans...")
    loans = []
    today = date.today()

    for _ in range(NUM_LOANS):
        item = random.choice(items)
        borrowed_on = random_date_between(today - timedelta(days=30), today)
        loan_data = {
            "inventory_id": item["id"],
            "borrower_name": random_name(),
            "department": random.choice(DEPARTMENTS),
            "qty": random.randint(1, 2),
            "purpose": random.choice(PURPOSES),
            # Some due dates land in the past, which makes those loans overdue
            "due_date": (borrowed_on + timedelta(days=random.randint(3, 21))).isoformat(),
            "staff": random.choice(STAFF),
        }

        try:
            loan = await ledger.create_loan(loan_data, today=borrowed_on)
        except ledger.InsufficientAvailability as e:
            print(f"  Skipped loan of {item['name']}: {e}")
            continue

        loans.append(loan)
        print(f"  Created loan: {loan['qty']} x {loan['costume_name']} to {loan['borrower_name']}")

        if random.random() < RETURN_RATIO:
            condition = random.choice(RETURN_CONDITIONS)
            return_data = {
                "condition_on_return": condition,
                "missing_items": 0 if condition == "Good" else random.randint(0, 1),
                "repair_cost": 0 if condition == "Good" else float(random.choice([150, 300, 500])),
                "checked_by": random.choice(STAFF),
            }
            returned_on = random_date_between(borrowed_on, today)
            await ledger.close_loan(loan["id"], return_data, today=returned_on)
            print(f"    Returned on {returned_on.isoformat()} in {condition} condition")

    return loans

async def main():
    """Main function to create all demo data."""
    print("Initializing database connection...")
    await init_db()

    print("\n=== COSTUME LOGISTICS DEMO DATA GENERATOR ===\n")

    items = await create_demo_inventory()
    loans = await create_demo_loans(items)

    print("\n=== DEMO DATA GENERATION COMPLETE ===\n")
    print(f"Created {len(items)} inventory items")
    print(f"Created {len(loans)} loans")

if __name__ == "__main__":
    asyncio.run(main())

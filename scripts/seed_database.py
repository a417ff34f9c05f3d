#!/usr/bin/env python3
"""
Script to seed the database with sample data for local testing.

    python scripts/seed_database.py            # reset and seed
    python scripts/seed_database.py admin NAME EMAIL PASSWORD  # create or promote an admin
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, timedelta
from app.database import init_db, drop_db, get_db, DatabaseManager
from app.models import User, AccessLevel, ReviewForm, ReviewFormStatus, AgeGroup, JCEPApplication
from app.utils.review_sections import QUESTIONS, BUDDY_EVALUATION
from app.services.auth_service import AuthService
from app.utils.errors import JCEPError
from app.utils.security import hash_password, generate_secure_token, build_token_url


def create_users(db):
    """Create an admin, buddies and junior commanders"""
    admin = User(
        name='Programme Admin',
        email='admin@jcep.local',
        username='admin',
        password_hash=hash_password('Admin123!'),
        access_level=AccessLevel.SYSTEM_ADMIN
    )
    db.add(admin)
    
    buddies = []
    for i, name in enumerate(['Grace Tan', 'Samuel Lim', 'Ruth Ong']):
        buddy = User(
            name=name,
            email=f'buddy{i + 1}@jcep.local',
            password_hash=hash_password('Buddy123!'),
            access_level=AccessLevel.USER
        )
        db.add(buddy)
        buddies.append(buddy)
    
    jcs = []
    for i, name in enumerate(['Daniel Koh', 'Esther Ng']):
        jc = User(
            name=name,
            email=f'jc{i + 1}@jcep.local',
            password_hash=hash_password('Junior123!'),
            access_level=AccessLevel.USER
        )
        db.add(jc)
        jcs.append(jc)
    
    db.flush()
    return {'admin': admin, 'buddies': buddies, 'jcs': jcs}


def create_review_forms(db, users):
    """One form per buddy; the last JC is unregistered"""
    year = datetime.utcnow().year
    age_groups = [AgeGroup.RK, AgeGroup.DR, AgeGroup.AR]
    jc_names = [jc.name for jc in users['jcs']] + ['Hannah Goh']
    
    forms = []
    for i, buddy in enumerate(users['buddies']):
        jc = users['jcs'][i] if i < len(users['jcs']) else None
        form = ReviewForm(
            schema_version=1,
            buddy_access_token=generate_secure_token(),
            jc_access_token=generate_secure_token(),
            token_expires_at=None,
            buddy_responses_visible_to_jc=False,
            jc_responses_visible_to_buddy=False,
            rotation_year=year,
            rotation_quarter=1,
            buddy_user_id=buddy.id,
            buddy_name=buddy.name,
            junior_commander_user_id=jc.id if jc else None,
            junior_commander_name=jc_names[i],
            age_group=age_groups[i],
            evaluation_date=datetime.utcnow() - timedelta(days=7),
            status=ReviewFormStatus.DRAFT,
            created_by=users['admin'].id
        )
        db.add(form)
        forms.append(form)
    
    # First form has the buddy's part written already
    forms[0].buddy_evaluation = dict(
        {field: {'question_text': text, 'answer': 'Sample answer'}
         for field, text in QUESTIONS[BUDDY_EVALUATION].items()},
        completed_at=datetime.utcnow().isoformat(),
        completed_by=forms[0].buddy_user_id
    )
    forms[0].status = ReviewFormStatus.IN_PROGRESS
    
    db.flush()
    return forms


def create_applications(db):
    """Sample applications across two years"""
    now = datetime.utcnow()
    samples = [
        ('Joel Chua', '91234567', AgeGroup.DR, 'I enjoy working with kids', None, None, now),
        ('Priscilla Wee', '98765432', AgeGroup.RK, 'I want to serve', AgeGroup.AR, 'Outdoor skills',
         now - timedelta(days=400)),
    ]
    for name, contact, choice1, reason1, choice2, reason2, submitted_at in samples:
        db.add(JCEPApplication(
            submitted_at=submitted_at,
            submission_year=submitted_at.year,
            full_name=name,
            contact_number=contact,
            age_group_choice1=choice1,
            reason_for_choice1=reason1,
            age_group_choice2=choice2,
            reason_for_choice2=reason2,
            acknowledged_motto_and_pledge=True
        ))


def create_admin(name, email, password):
    """Create the first system admin, or promote an existing account"""
    init_db()
    auth_service = AuthService()
    
    existing = DatabaseManager(User).get_by(email=email.strip().lower())
    try:
        if existing:
            auth_service.set_access_level(existing.id, AccessLevel.SYSTEM_ADMIN)
        else:
            auth_service.register_user(
                {'name': name, 'email': email, 'password': password},
                access_level=AccessLevel.SYSTEM_ADMIN
            )
    except JCEPError as e:
        print(f"Could not create admin: {e.message}")
        return 1
    
    print(f"{email} is now a system admin")
    return 0


def main():
    """Main seeding function"""
    print("Dropping existing database...")
    drop_db()
    
    print("Initializing new database...")
    init_db()
    
    # Use a single session for all operations
    with get_db() as db:
        print("Creating users...")
        users = create_users(db)
        
        print("Creating review forms...")
        forms = create_review_forms(db, users)
        
        print("Creating applications...")
        create_applications(db)
        
        links = [(f.id, build_token_url(f.buddy_access_token), build_token_url(f.jc_access_token))
                 for f in forms]
    
    print("\nDatabase seeded successfully!")
    print("Created:")
    print("- 1 Admin user (admin@jcep.local / Admin123!)")
    print(f"- {len(users['buddies'])} Buddies (buddyN@jcep.local / Buddy123!)")
    print(f"- {len(users['jcs'])} Junior Commanders (jcN@jcep.local / Junior123!)")
    print(f"- {len(forms)} review forms")
    for form_id, buddy_link, jc_link in links:
        print(f"  form {form_id}: buddy {buddy_link}")
        print(f"  form {form_id}: jc    {jc_link}")


if __name__ == "__main__":
    if len(sys.argv) == 5 and sys.argv[1] == 'admin':
        sys.exit(create_admin(*sys.argv[2:]))
    main()

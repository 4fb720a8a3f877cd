import random
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.tasks.choices import TaskPriority, TaskStatus
from apps.tasks.models import Attachment, Comment, Task, TimeLog
from apps.tasks.rules.attachments import ALLOWED_FILE_TYPES, generate_safe_file_name

User = get_user_model()

FIRST_NAMES = [
    'Alice', 'Bob', 'Charlie', 'Diana', 'Eve', 'Frank', 'Grace', 'Henry',
    'Ivy', 'Jack', 'Kate', 'Liam', 'Mia', 'Noah', 'Olivia', 'Peter',
]
LAST_NAMES = [
    'Smith', 'Johnson', 'Williams', 'Brown', 'Jones', 'Garcia', 'Miller',
    'Davis', 'Wilson', 'Anderson', 'Thomas', 'Moore',
]
COMMENTS = [
    "Working on this task now.",
    "This looks good, just need to test it.",
    "Found an issue, need to fix it.",
    "Need more information about this requirement.",
    "Blocked by the parent task.",
    "Updated according to the review.",
]


class Command(BaseCommand):
    help = 'Seed the database with sample users, tasks, comments, attachments and time logs'

    def add_arguments(self, parser):
        parser.add_argument('--users', type=int, default=10, help='Number of users to create')
        parser.add_argument('--tasks', type=int, default=50, help='Number of root tasks to create')

    def handle(self, *args, **options):
        self.stdout.write('Seeding database...')

        users = self.create_users(options['users'])
        tasks = self.create_tasks(users, options['tasks'])
        comments = self.create_comments(tasks, users)
        attachments = self.create_attachments(tasks, users)
        time_logs = self.create_time_logs(tasks, users)

        self.stdout.write(
            self.style.SUCCESS(
                f'Users: {len(users)}\n'
                f'Tasks: {len(tasks)}\n'
                f'Comments: {comments}\n'
                f'Attachments: {attachments}\n'
                f'Time logs: {time_logs}\n\n'
                f'Admin user: admin / admin123\n'
                f'Regular users: [username] / password123'
            )
        )

    def create_users(self, num_users):
        self.stdout.write('Creating users...')
        users = []

        admin, created = User.objects.get_or_create(
            username='admin',
            defaults={
                'email': 'admin@example.com',
                'display_name': 'Admin',
                'is_staff': True,
                'is_superuser': True,
            }
        )
        if created:
            admin.set_password('admin123')
            admin.save()
        users.append(admin)

        for i in range(num_users):
            first_name = random.choice(FIRST_NAMES)
            last_name = random.choice(LAST_NAMES)
            username = f"{first_name.lower()}_{last_name.lower()}{i}"
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    'email': f"{username}@example.com",
                    'display_name': f"{first_name} {last_name}",
                }
            )
            if created:
                user.set_password('password123')
                user.save()
            users.append(user)

        return users

    def create_tasks(self, users, num_tasks):
        self.stdout.write('Creating tasks...')
        tasks = []
        now = timezone.now()

        for i in range(num_tasks):
            start = now + timedelta(days=random.randint(-10, 10))
            task = Task.objects.create(
                title=f"Task {i + 1}: {random.choice(['Implement', 'Fix', 'Review', 'Plan'])} "
                      f"{random.choice(['feature', 'bug', 'release', 'endpoint'])}",
                description="Seeded task",
                status=random.choice(TaskStatus.values),
                priority=random.choice(TaskPriority.values),
                importance=random.random() > 0.5,
                urgency=random.random() > 0.5,
                progress=random.randint(0, 100),
                scheduled_start_date=start,
                scheduled_end_date=start + timedelta(days=random.randint(1, 7)),
                due_date=now + timedelta(days=random.randint(-5, 30)),
                estimated_time=random.randint(15, 480),
                created_by=random.choice(users),
                assigned_to=random.choice(users) if random.random() > 0.3 else None,
            )
            tasks.append(task)

            # a third of the tasks get a couple of subtasks
            if random.random() < 0.3:
                for j in range(random.randint(1, 3)):
                    tasks.append(Task.objects.create(
                        title=f"{task.title} / step {j + 1}",
                        parent=task,
                        importance=task.importance,
                        urgency=random.random() > 0.5,
                        created_by=task.created_by,
                    ))

        return tasks

    def create_comments(self, tasks, users):
        self.stdout.write('Creating comments...')
        count = 0
        for task in tasks:
            if random.random() > 0.4:
                continue
            root = Comment.objects.create(task=task, user=random.choice(users), content=random.choice(COMMENTS))
            count += 1
            for _ in range(random.randint(0, 3)):
                Comment.objects.create(task=task, user=random.choice(users), content=random.choice(COMMENTS), parent=root)
                count += 1
        return count

    def create_attachments(self, tasks, users):
        self.stdout.write('Creating attachments...')
        count = 0
        for task in random.sample(tasks, k=len(tasks) // 4):
            original = f"notes-{task.id}.pdf"
            Attachment.objects.create(
                task=task,
                uploaded_by=random.choice(users),
                file_name=generate_safe_file_name(original),
                original_name=original,
                file_size=random.randint(1024, 5 * 1024 * 1024),
                file_type=random.choice(ALLOWED_FILE_TYPES),
                file_path=f"/uploads/{task.id}/{original}",
            )
            count += 1
        return count

    def create_time_logs(self, tasks, users):
        self.stdout.write('Creating time logs...')
        count = 0
        day = timezone.now() - timedelta(days=30)
        for user in users:
            # back to back, so a user's logs never overlap
            cursor = day
            for task in random.sample(tasks, k=min(3, len(tasks))):
                seconds = random.randint(600, 7200)
                TimeLog.objects.create(
                    task=task,
                    user=user,
                    started_at=cursor,
                    ended_at=cursor + timedelta(seconds=seconds),
                    duration=seconds,
                    description="Seeded work session",
                )
                cursor += timedelta(seconds=seconds + 300)
                count += 1
        return count

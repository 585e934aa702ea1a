from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from config import settings
from tasks.payment_reminders import run_payment_extension_reminders, run_payment_reminders

scheduler = BackgroundScheduler(timezone=settings.SCHEDULER_TIMEZONE)

# Monthly renewal reminders at 8:00 AM on the 1st, 2nd and 3rd (Africa/Nairobi by default)
scheduler.add_job(
    run_payment_reminders,
    CronTrigger(day="1,2,3", hour=8, minute=0, timezone=settings.SCHEDULER_TIMEZONE),
    id="payment_reminders_job",
)

# Extension reminders every day at 8:00 AM for extensions due in 1-3 days
scheduler.add_job(
    run_payment_extension_reminders,
    CronTrigger(hour=8, minute=0, timezone=settings.SCHEDULER_TIMEZONE),
    id="payment_extension_reminders_job",
)

import asyncio
import logging

from order_desk.config import settings
from order_desk.domain.reminders import ReminderBucket
from order_desk.infrastructure.factory import build_storage
from order_desk.infrastructure.sql_storage import SQLTableStorage
from order_desk.infrastructure.unit_of_work import UnitOfWork
from order_desk.application.payments import GetReminderBoardUseCase

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


async def check_reminders(use_case: GetReminderBoardUseCase) -> int:
    """Пишет в лог просроченные и сегодняшние напоминания. Возвращает их количество."""
    groups = await use_case()
    for order in groups[ReminderBucket.OVERDUE]:
        reminder = order.payment_reminder_date or order.payment_due_date
        logger.warning(f"Просрочена оплата заказа {order.id} ({order.client_name}): напоминание {reminder}")
    for order in groups[ReminderBucket.TODAY]:
        logger.info(f"Сегодня ожидается оплата заказа {order.id} ({order.client_name})")
    return len(groups[ReminderBucket.OVERDUE]) + len(groups[ReminderBucket.TODAY])


async def reminder_worker():
    """Worker для проверки напоминаний об оплате"""
    logger.info("Reminder worker запущен")

    storage = build_storage(settings)
    if isinstance(storage, SQLTableStorage):
        await storage.init()
    use_case = GetReminderBoardUseCase(UnitOfWork(storage))

    while True:
        try:
            due = await check_reminders(use_case)
            if due:
                logger.info(f"Напоминаний к обработке: {due}")
            await asyncio.sleep(settings.REMINDER_POLL_SECONDS)

        except Exception as e:
            logger.error(f"Ошибка в reminder worker: {e}", exc_info=True)
            await asyncio.sleep(10)


async def main():
    await reminder_worker()


if __name__ == "__main__":
    asyncio.run(main())

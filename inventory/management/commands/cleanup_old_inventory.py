"""
清理库存表的管理命令，由定时任务每天调用：

    DJANGO_SETTINGS_MODULE=stockflow.config.production django-admin cleanup_old_inventory --days 90
"""
from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import ValidationException
from stockflow.bootstrap import bootstrap


class Command(BaseCommand):
    help = "删除孤立和长期未更新的库存行，负数库存归零，并失效库存列表缓存"

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help="超过多少天未更新的库存行会被删除，默认取 INVENTORY_SETTINGS['CLEANUP_DAYS']"
        )

    def handle(self, *args, **options):
        service = bootstrap().inventory.create_application_service()
        try:
            result = service.cleanup_old_inventory(options['days'])
        except ValidationException as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(
            f"库存清理完成: 孤立行 {result['orphaned']}，过期行 {result['stale']}，负数归零 {result['clamped']}"
        ))

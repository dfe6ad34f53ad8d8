from tortoise import fields, models

from webindex.utils.url_utils import MAX_URL_LENGTH

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

MAX_ERROR_MESSAGE_LENGTH = 512


class CrawlQueue(models.Model):
    """
    Crawl frontier entry; one row per URL.
    """
    id = fields.IntField(pk=True)
    url = fields.CharField(max_length=MAX_URL_LENGTH, unique=True)
    status = fields.CharField(
        max_length=20,
        default=STATUS_PENDING,
        index=True,  # pending / processing / completed / failed
    )
    priority = fields.IntField(default=0, index=True)
    retry_count = fields.IntField(default=0)
    error_message = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    processed_at = fields.DatetimeField(null=True)

    class Meta:
        table = "crawl_queue"
        indexes = (("status", "priority", "created_at"),)

    def __str__(self):
        return f"{self.url} [{self.status}]"

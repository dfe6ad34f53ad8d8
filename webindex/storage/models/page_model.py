from tortoise import fields, models

from webindex.utils.url_utils import MAX_URL_LENGTH


class IndexedPage(models.Model):
    """
    Extracted representation of a successfully crawled page.
    """
    id = fields.IntField(pk=True)
    url = fields.CharField(max_length=MAX_URL_LENGTH, unique=True)
    title = fields.TextField(null=True)
    description = fields.TextField(null=True)
    content = fields.TextField(null=True)
    domain = fields.CharField(max_length=255, null=True, index=True)
    language = fields.CharField(max_length=16, null=True)
    page_rank = fields.FloatField(default=0.0, index=True)
    last_crawled_at = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "indexed_pages"

    def __str__(self):
        return f"{self.url} [{self.page_rank}]"

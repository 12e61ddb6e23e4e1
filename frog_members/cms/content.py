"""
Blog and interview helpers on top of the cached microCMS client.
"""
from .client import get_list_with_cache, get_with_cache

BLOG_ENDPOINT = 'blogs'
INTERVIEW_ENDPOINT = 'interviews'

DEFAULT_ORDER = '-publishedAt'
DEFAULT_LIMIT = 10


def _list_params(limit=DEFAULT_LIMIT, offset=0, orders=DEFAULT_ORDER, filters=None, q=None, fields=None):
    params = {'limit': limit, 'offset': offset, 'orders': orders}
    if filters:
        params['filters'] = filters
    if q:
        params['q'] = q
    if fields:
        params['fields'] = fields
    return params


def category_filter(category, field='category'):
    return f"{field}[contains]{category}"


def get_blogs(limit=DEFAULT_LIMIT, offset=0, category=None, force_refresh=False):
    filters = category_filter(category, 'categories') if category else None
    return get_list_with_cache(
        BLOG_ENDPOINT,
        _list_params(limit, offset, filters=filters),
        force_refresh=force_refresh,
    )


def get_blog(content_id, force_refresh=False):
    return get_with_cache(BLOG_ENDPOINT, {'content_id': content_id}, force_refresh=force_refresh)


def get_interviews(limit=DEFAULT_LIMIT, offset=0, q=None, orders=DEFAULT_ORDER, force_refresh=False):
    return get_list_with_cache(
        INTERVIEW_ENDPOINT,
        _list_params(limit, offset, orders=orders, q=q),
        force_refresh=force_refresh,
    )


def get_interview(content_id, force_refresh=False):
    return get_with_cache(INTERVIEW_ENDPOINT, {'content_id': content_id}, force_refresh=force_refresh)


def get_interviews_by_category(category, limit=DEFAULT_LIMIT, offset=0):
    return get_list_with_cache(
        INTERVIEW_ENDPOINT,
        _list_params(limit, offset, filters=category_filter(category)),
    )


def _category_id(article):
    category = article.get('category')
    if isinstance(category, list):
        category = category[0] if category else None
    if isinstance(category, dict):
        return category.get('id')
    return category


def get_related(endpoint, content_id, limit=3):
    """Articles sharing the first category of content_id, excluding itself."""
    article = get_with_cache(endpoint, {'content_id': content_id})
    category = _category_id(article)
    if not category:
        return []
    related = get_list_with_cache(
        endpoint,
        _list_params(limit + 1, filters=category_filter(category)),
    )
    return [item for item in related['contents'] if item.get('id') != content_id][:limit]


def get_related_interviews(content_id, limit=3):
    return get_related(INTERVIEW_ENDPOINT, content_id, limit)


def get_optimized_image_url(url, width=800, image_format='webp', quality=80):
    """imgix parameters microCMS serves images with."""
    if not url:
        return ''
    separator = '&' if '?' in url else '?'
    return f"{url}{separator}w={width}&fm={image_format}&q={quality}"

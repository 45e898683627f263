from dambridge.api.v4.base import Resource
from dambridge.api.v4.collections import CollectionsResource
from dambridge.api.v4.media import MediaResource
from dambridge.api.v4.metaproperties import MetapropertiesResource
from dambridge.api.v4.taxonomy import (
    BrandsResource,
    CategoriesResource,
    SmartfiltersResource,
    TagsResource,
)
from dambridge.api.v4.usage import UsageResource
from dambridge.api.v4.users import UsersResource

__all__ = [
    "Resource",
    "MediaResource",
    "MetapropertiesResource",
    "CollectionsResource",
    "TagsResource",
    "SmartfiltersResource",
    "BrandsResource",
    "CategoriesResource",
    "UsageResource",
    "UsersResource",
]

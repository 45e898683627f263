"""Tests for the v4 resource request builders."""

import json

import pytest

from dambridge.api.transport import APIResponse
from dambridge.api.v4 import (
    BrandsResource,
    CategoriesResource,
    CollectionsResource,
    MediaResource,
    MetapropertiesResource,
    SmartfiltersResource,
    TagsResource,
    UsageResource,
    UsersResource,
)
from dambridge.core.exceptions import ValidationError


def sent(mock_api, index=0):
    """Return (method, path, params) of the index-th send() call."""
    call = mock_api.send.await_args_list[index]
    method, path = call.args[:2]
    return method, path, call.kwargs.get("params")


class TestMedia:
    """Tests for MediaResource."""

    @pytest.mark.asyncio
    async def test_list(self, mock_api):
        mock_api.send.return_value = APIResponse(data=[{"id": "m1"}])

        assets = await MediaResource(mock_api).list({"propertyOptionId": ["o1", "o2"], "type": "image"})

        assert assets == [{"id": "m1"}]
        assert sent(mock_api) == (
            "GET",
            "api/v4/media/",
            {"propertyOptionId": "o1,o2", "type": "image", "count": False},
        )

    @pytest.mark.asyncio
    async def test_get(self, mock_api):
        await MediaResource(mock_api).get("m1", versions=True)

        assert sent(mock_api) == ("GET", "api/v4/media/m1/", {"versions": True})

    @pytest.mark.asyncio
    async def test_total(self, mock_api):
        mock_api.send.return_value = APIResponse(data={"count": {"total": 42}})

        assert await MediaResource(mock_api).total({"type": "video"}) == 42
        assert sent(mock_api)[2] == {"type": "video", "count": True}

    @pytest.mark.asyncio
    async def test_all_pages_until_short_page(self, mock_api):
        pages = [
            APIResponse(data=[{"id": "1"}, {"id": "2"}]),
            APIResponse(data=[{"id": "3"}, {"id": "4"}]),
            APIResponse(data=[{"id": "5"}]),
        ]
        mock_api.send.side_effect = pages

        assets = await MediaResource(mock_api).all({"limit": 2})

        assert [asset["id"] for asset in assets] == ["1", "2", "3", "4", "5"]
        assert [sent(mock_api, i)[2]["page"] for i in range(3)] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_all_stops_on_empty_page(self, mock_api):
        mock_api.send.side_effect = [APIResponse(data=[{"id": "1"}, {"id": "2"}]), APIResponse(data=[])]

        assets = await MediaResource(mock_api).all({"limit": 2})

        assert len(assets) == 2
        assert mock_api.send.await_count == 2

    @pytest.mark.asyncio
    async def test_all_default_page_size(self, mock_api):
        mock_api.send.return_value = APIResponse(data=[])

        await MediaResource(mock_api).all()

        assert sent(mock_api)[2]["limit"] == 50

    @pytest.mark.asyncio
    async def test_edit_and_delete(self, mock_api):
        media = MediaResource(mock_api)

        await media.edit("m1", name="New name")
        await media.delete("m1")

        assert sent(mock_api, 0) == ("POST", "api/v4/media/", {"id": "m1", "name": "New name"})
        assert sent(mock_api, 1) == ("DELETE", "api/v4/media/m1/", None)

    @pytest.mark.asyncio
    async def test_download_url(self, mock_api):
        await MediaResource(mock_api).download_url("m1")

        assert sent(mock_api)[:2] == ("GET", "api/v4/media/m1/download/")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["get", "edit", "delete", "download_url"])
    async def test_missing_id(self, mock_api, operation):
        with pytest.raises(ValidationError) as exc_info:
            await getattr(MediaResource(mock_api), operation)("")

        assert exc_info.value.module == "media"
        assert exc_info.value.param == "id"
        mock_api.send.assert_not_awaited()


class TestMetaproperties:
    """Tests for MetapropertiesResource."""

    @pytest.mark.asyncio
    async def test_list_flattens_dict(self, mock_api):
        mock_api.send.return_value = APIResponse(
            data={"Color": {"id": "p1"}, "Size": {"id": "p2"}}
        )

        assert await MetapropertiesResource(mock_api).list() == [{"id": "p1"}, {"id": "p2"}]

    @pytest.mark.asyncio
    async def test_create_serialises_data(self, mock_api):
        await MetapropertiesResource(mock_api).create(name="Color", type="select")

        method, path, params = sent(mock_api)
        assert (method, path) == ("POST", "api/v4/metaproperties/")
        assert json.loads(params["data"]) == {"name": "Color", "type": "select"}

    @pytest.mark.asyncio
    async def test_option_operations(self, mock_api):
        metaproperties = MetapropertiesResource(mock_api)

        await metaproperties.create_option("p1", name="Red")
        await metaproperties.edit_option("p1", option_id="o1", label="Crimson")
        await metaproperties.delete_option("p1", option_id="o1")

        assert sent(mock_api, 0)[1] == "api/v4/metaproperties/p1/options/"
        assert json.loads(sent(mock_api, 0)[2]["data"]) == {"name": "Red"}
        assert sent(mock_api, 1)[1] == "api/v4/metaproperties/p1/options/o1/"
        assert json.loads(sent(mock_api, 1)[2]["data"]) == {"optionId": "o1", "label": "Crimson"}
        assert sent(mock_api, 2)[:2] == ("DELETE", "api/v4/metaproperties/p1/options/o1/")

    @pytest.mark.asyncio
    async def test_option_validation(self, mock_api):
        with pytest.raises(ValidationError):
            await MetapropertiesResource(mock_api).create_option("p1")
        with pytest.raises(ValidationError):
            await MetapropertiesResource(mock_api).edit_option("p1")
        mock_api.send.assert_not_awaited()


class TestCollections:
    """Tests for CollectionsResource."""

    @pytest.mark.asyncio
    async def test_create_requires_name(self, mock_api):
        with pytest.raises(ValidationError) as exc_info:
            await CollectionsResource(mock_api).create("")

        assert exc_info.value.param == "name"
        mock_api.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_add_and_remove_media(self, mock_api):
        collections = CollectionsResource(mock_api)

        await collections.add_media("c1", ["m1", "m2"])
        await collections.remove_media("c1", ["m1", "m2"])

        method, path, params = sent(mock_api, 0)
        assert (method, path) == ("POST", "api/v4/collections/c1/media/")
        assert json.loads(params["data"]) == ["m1", "m2"]
        assert sent(mock_api, 1) == ("DELETE", "api/v4/collections/c1/media/", {"deleteIds": "m1,m2"})

    @pytest.mark.asyncio
    async def test_share(self, mock_api):
        await CollectionsResource(mock_api).share(
            "c1", recipients="a@example.com", collection_options="view", sendMail=True
        )

        assert sent(mock_api) == (
            "POST",
            "api/v4/collections/c1/share/",
            {"recipients": "a@example.com", "collectionOptions": "view", "sendMail": True},
        )

    @pytest.mark.asyncio
    async def test_share_requires_options(self, mock_api):
        with pytest.raises(ValidationError) as exc_info:
            await CollectionsResource(mock_api).share("c1", recipients="a@example.com")

        assert exc_info.value.param == "collectionOptions"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "resource_class,path",
    [
        (TagsResource, "api/v4/tags/"),
        (SmartfiltersResource, "api/v4/smartfilters/"),
        (BrandsResource, "api/v4/brands/"),
        (CategoriesResource, "api/v4/categories/"),
    ],
)
async def test_listings(mock_api, resource_class, path):
    await resource_class(mock_api).list()

    assert sent(mock_api)[:2] == ("GET", path)


class TestUsage:
    """Tests for UsageResource."""

    @pytest.mark.asyncio
    async def test_get(self, mock_api):
        await UsageResource(mock_api).get("a1")

        assert sent(mock_api) == ("GET", "api/media/usage/", {"asset_id": "a1"})

    @pytest.mark.asyncio
    async def test_create(self, mock_api):
        await UsageResource(mock_api).create("a1", integration_id="i1", uri="/blog/post")

        assert sent(mock_api) == (
            "POST",
            "api/media/usage/",
            {
                "asset_id": "a1",
                "integration_id": "i1",
                "timestamp": None,
                "uri": "/blog/post",
                "additional": None,
            },
        )

    @pytest.mark.asyncio
    async def test_delete_requires_integration_id(self, mock_api):
        with pytest.raises(ValidationError) as exc_info:
            await UsageResource(mock_api).delete("a1")

        assert exc_info.value.module == "asset usage"
        assert exc_info.value.param == "integration_id"
        mock_api.send.assert_not_awaited()


class TestUsers:
    """Tests for UsersResource."""

    @pytest.mark.asyncio
    async def test_login(self, mock_api):
        await UsersResource(mock_api).login("user", "secret", "consumer-1")

        assert sent(mock_api) == (
            "POST",
            "api/v4/users/login/",
            {"username": "user", "password": "secret", "consumerId": "consumer-1"},
        )

    @pytest.mark.asyncio
    async def test_login_requires_all_credentials(self, mock_api):
        with pytest.raises(ValidationError):
            await UsersResource(mock_api).login("user", "secret")

        mock_api.send.assert_not_awaited()

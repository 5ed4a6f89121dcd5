import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from doc_agent.agent.registry import ToolRegistry
from doc_agent.agent.crm_tools import register_crm_tools
from doc_agent.config import RecordConfig, SalesforceSettings
from doc_agent.crm.client import RecordApiError, SalesforceClient
from doc_agent.crm.contacts import ContactLookupService
from doc_agent.crm.opportunities import OpportunityLookupService
from doc_agent.storage.memory import InMemoryContactStore
from doc_agent.types import Contact

UNAVAILABLE = (
    "Opportunity information is temporarily unavailable. "
    "Continue with your work without mentioning it."
)

CONTACTS = [
    Contact(
        id="003A",
        first_name="Ann",
        last_name="Lee",
        email="ann.lee@corp.com",
        created_date=datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc),
        inactive_flag=0,
    ),
    Contact(
        id="003B",
        first_name="Bob",
        last_name="Smith",
        email="bob@corp.com",
        phone="555-0100",
        created_date=datetime(2024, 3, 6, 8, 0, tzinfo=timezone.utc),
    ),
    Contact(
        id="003C",
        first_name="Carol",
        last_name="Annis",
        email="carol@other.com",
        created_date=datetime(2024, 3, 4, 23, 59, tzinfo=timezone.utc),
        inactive_flag=1,
    ),
]


class BrokenContactStore:
    async def fetch_contacts(self, query):
        raise ConnectionError("replica offline")


def _contact_registry(store=None) -> ToolRegistry:
    registry = ToolRegistry()
    register_crm_tools(registry, contacts=ContactLookupService(store or InMemoryContactStore(CONTACTS)))
    return registry


async def _contacts(registry: ToolRegistry, **payload) -> list[dict]:
    return json.loads(await registry.execute("get_contact_information", payload))


@pytest.mark.asyncio
async def test_contacts_default_to_active_newest_first() -> None:
    output = await _contacts(_contact_registry())

    assert [c["id"] for c in output] == ["003B", "003A"]
    assert output[0] == {
        "id": "003B",
        "firstName": "Bob",
        "lastName": "Smith",
        "email": "bob@corp.com",
        "phone": "555-0100",
        "createdDate": "2024-03-06T08:00:00Z",
        "isActive": True,
    }


@pytest.mark.asyncio
async def test_search_term_matches_any_name_or_email() -> None:
    output = await _contacts(_contact_registry(), search_term="ANN", active_only=False)

    assert [c["id"] for c in output] == ["003A", "003C"]
    assert output[1]["isActive"] is False


@pytest.mark.asyncio
async def test_contact_id_supersedes_other_filters() -> None:
    output = await _contacts(
        _contact_registry(), contact_id="003C", search_term="zzz", email="nobody"
    )

    assert [c["id"] for c in output] == ["003C"]


@pytest.mark.asyncio
async def test_created_on_date_wins_over_range() -> None:
    output = await _contacts(
        _contact_registry(),
        created_on_date="2024-03-05",
        created_after="2024-03-06T00:00:00Z",
        active_only="false",
    )

    assert [c["id"] for c in output] == ["003A"]


@pytest.mark.asyncio
async def test_contacts_date_range_sort_and_paging() -> None:
    registry = _contact_registry()

    ranged = await _contacts(
        registry,
        created_after="2024-03-05",
        created_before="2024-03-07",
        sort_order="OLDEST",
        active_only=False,
    )
    paged = await _contacts(registry, sort_order="oldest", take=1, skip=1, active_only=False)

    assert [c["id"] for c in ranged] == ["003A", "003B"]
    assert [c["id"] for c in paged] == ["003A"]


@pytest.mark.asyncio
async def test_direct_contact_lookup_bounds_skip() -> None:
    service = ContactLookupService(InMemoryContactStore(CONTACTS), RecordConfig(max_offset=1))

    result = await service.get_contacts(skip=10**6, active_only=False, sort_order="oldest")

    assert [c.id for c in result.payload] == ["003A", "003B"]


@pytest.mark.asyncio
async def test_contact_store_failure_yields_empty_list() -> None:
    assert await _contacts(_contact_registry(BrokenContactStore())) == []


class FakeSalesforce:
    """Minimal token and query endpoints served through `httpx.MockTransport`."""

    def __init__(
        self,
        records=None,
        expire_first_query=False,
        reject_login=False,
        token_body=None,
        query_body=None,
        on_token=None,
    ) -> None:
        self.records = records or []
        self.token_body = token_body
        self.query_body = query_body
        self.on_token = on_token
        self.expire_first_query = expire_first_query
        self.reject_login = reject_login
        self.requests: list[httpx.Request] = []
        self.tokens_issued = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/services/oauth2/token":
            if self.reject_login:
                return httpx.Response(400, json={"error": "invalid_grant"})
            self.tokens_issued += 1
            if self.on_token is not None:
                self.on_token(self.tokens_issued)
            if self.token_body is not None:
                return httpx.Response(200, json=self.token_body)
            return httpx.Response(
                200,
                json={
                    "access_token": f"token-{self.tokens_issued}",
                    "instance_url": "https://acme.my.salesforce.com/",
                },
            )
        if request.url.path == "/services/data/v60.0/query":
            if self.expire_first_query and self.tokens_issued == 1:
                return httpx.Response(401, json=[{"errorCode": "INVALID_SESSION_ID"}])
            if self.query_body is not None:
                return httpx.Response(200, json=self.query_body)
            return httpx.Response(
                200,
                json={"totalSize": len(self.records), "done": True, "records": self.records},
            )
        return httpx.Response(404)


def _opportunity_service(fake: FakeSalesforce) -> OpportunityLookupService:
    settings = SalesforceSettings(
        client_id="client",
        client_secret="secret",
        username="agent@acme.com",
        password="pw",
        security_token="tok",
        endpoint="https://login.example.com",
    )
    return OpportunityLookupService(SalesforceClient(settings, transport=httpx.MockTransport(fake)))


def _opportunity_registry(service: OpportunityLookupService) -> ToolRegistry:
    registry = ToolRegistry()
    register_crm_tools(registry, opportunities=service)
    return registry


RECORD = {
    "attributes": {"type": "Opportunity", "url": "/services/data/v60.0/sobjects/Opportunity/006X"},
    "Id": "006X",
    "Name": "Acme renewal",
    "StageName": "Closed Won",
    "Amount": 1200.5,
    "CreatedDate": "2024-01-02T03:04:05Z",
    "AccountId": "001X",
    "Account": {"attributes": {"type": "Account"}, "Name": "Acme"},
    "POLICY_NUMBER_CURRENT__C": "P'1",
    "EFFECTIVE_DATE__C": "2024-02-01",
    "LINE_OF_BUSINESS__C": None,
}


@pytest.mark.asyncio
async def test_opportunity_lookup_authenticates_lazily_and_escapes_filters() -> None:
    fake = FakeSalesforce(records=[RECORD])
    service = _opportunity_service(fake)
    registry = _opportunity_registry(service)

    assert fake.requests == []
    assert not service.client.is_connected

    output = json.loads(
        await registry.execute(
            "get_opportunity_information", {"policy_number": "P'1", "take": 500}
        )
    )

    login, query = fake.requests
    assert login.method == "POST"
    assert b"grant_type=password" in login.content
    assert b"password=pwtok" in login.content
    assert query.headers["Authorization"] == "Bearer token-1"
    assert str(query.url).startswith("https://acme.my.salesforce.com/services/data/v60.0/query")
    soql = query.url.params["q"]
    assert "WHERE POLICY_NUMBER_CURRENT__C LIKE '%P\\'1%'" in soql
    assert soql.endswith("ORDER BY CreatedDate DESC LIMIT 100")

    assert output["totalSize"] == 1
    opportunity = output["opportunities"][0]
    assert opportunity["id"] == "006X"
    assert opportunity["accountName"] == "Acme"
    assert opportunity["policyNumber"] == "P'1"
    assert opportunity["amount"] == "1200.5"
    assert opportunity["policyEffectiveDate"] == "2024-02-01"
    assert "attributes" not in opportunity
    assert "lineOfBusiness" not in opportunity

    await service.client.aclose()


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_once() -> None:
    fake = FakeSalesforce(records=[RECORD], expire_first_query=True)
    service = _opportunity_service(fake)

    output = json.loads(
        await _opportunity_registry(service).execute(
            "get_opportunity_information", {"opportunity_id": "006X", "stage_name": "Lost"}
        )
    )

    assert fake.tokens_issued == 2
    assert [r.url.path for r in fake.requests] == [
        "/services/oauth2/token",
        "/services/data/v60.0/query",
        "/services/oauth2/token",
        "/services/data/v60.0/query",
    ]
    assert fake.requests[-1].headers["Authorization"] == "Bearer token-2"
    assert "WHERE Id = '006X' ORDER BY" in fake.requests[-1].url.params["q"]
    assert output["totalSize"] == 1


@pytest.mark.asyncio
async def test_remote_failure_becomes_advisory() -> None:
    fake = FakeSalesforce(reject_login=True)
    service = _opportunity_service(fake)

    output = await _opportunity_registry(service).execute("get_opportunity_information", {})

    assert output == UNAVAILABLE
    assert not service.client.is_connected


@pytest.mark.asyncio
async def test_client_raises_record_api_error_on_rejected_query() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json={"access_token": "t", "instance_url": "https://x.test"})
        return httpx.Response(400, json=[{"errorCode": "MALFORMED_QUERY"}])

    settings = SalesforceSettings(client_id="c", client_secret="s", username="u", password="p")
    client = SalesforceClient(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(RecordApiError, match="MALFORMED_QUERY"):
        await client.query("SELECT Id FROM Opportunity")
    await client.aclose()


@pytest.mark.asyncio
async def test_cancellation_during_authentication_stops_before_query() -> None:
    cancel = asyncio.Event()
    fake = FakeSalesforce(records=[RECORD], on_token=lambda issued: cancel.set())
    service = _opportunity_service(fake)

    with pytest.raises(asyncio.CancelledError):
        await service.get_opportunities(cancel=cancel)

    assert [r.url.path for r in fake.requests] == ["/services/oauth2/token"]
    await service.client.aclose()


@pytest.mark.asyncio
async def test_cancellation_during_reauthentication_skips_retry() -> None:
    cancel = asyncio.Event()

    def _cancel_on_refresh(issued: int) -> None:
        if issued == 2:
            cancel.set()

    fake = FakeSalesforce(records=[RECORD], expire_first_query=True, on_token=_cancel_on_refresh)
    service = _opportunity_service(fake)

    with pytest.raises(asyncio.CancelledError):
        await service.get_opportunities(cancel=cancel)

    assert [r.url.path for r in fake.requests] == [
        "/services/oauth2/token",
        "/services/data/v60.0/query",
        "/services/oauth2/token",
    ]
    await service.client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token_body",
    [["unexpected"], "token", {"access_token": "", "instance_url": "https://x.test"}],
)
async def test_malformed_token_response_becomes_advisory(token_body) -> None:
    fake = FakeSalesforce(records=[RECORD], token_body=token_body)
    service = _opportunity_service(fake)

    output = await _opportunity_registry(service).execute("get_opportunity_information", {})

    assert output == UNAVAILABLE
    assert not service.client.is_connected
    assert [r.url.path for r in fake.requests] == ["/services/oauth2/token"]
    await service.client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("query_body", [[RECORD], {"records": "none"}, 42])
async def test_malformed_query_response_becomes_advisory(query_body) -> None:
    fake = FakeSalesforce(query_body=query_body)
    service = _opportunity_service(fake)

    output = await _opportunity_registry(service).execute("get_opportunity_information", {})

    assert output == UNAVAILABLE
    await service.client.aclose()


@pytest.mark.asyncio
async def test_query_response_without_records_is_empty() -> None:
    fake = FakeSalesforce(query_body={"totalSize": 0, "done": True})
    service = _opportunity_service(fake)

    output = json.loads(
        await _opportunity_registry(service).execute("get_opportunity_information", {})
    )

    assert output == {"opportunities": [], "totalSize": 0}
    await service.client.aclose()

"""
Tests for the Nuxeo API client.

These tests use responses library to mock HTTP requests,
validating client behavior without making real API calls.
"""

import base64
import hashlib
import json

import pytest
import responses
from fixtures import BOUNDARY, build_multipart, truncated_server
from responses import matchers

from nuxeo_client import __version__
from nuxeo_client.client import BasicAuth, NuxeoClient, PortalSSOAuth, TokenAuth
from nuxeo_client.config import AuthConfig, Config, ConfigValidationError, ServerConfig
from nuxeo_client.errors import NuxeoClientError, NuxeoConnectionError, NuxeoRemoteError
from nuxeo_client.marshaller import Blob, Blobs
from nuxeo_client.objects import Document, Documents, Group, User, Workflows

BASE_URL = "http://nuxeo.test:8080/nuxeo"
API_URL = f"{BASE_URL}/api/v1"
NXENTITY = "application/json+nxentity"


def make_client(**kwargs) -> NuxeoClient:
    return NuxeoClient(BASE_URL, BasicAuth("Administrator", "Administrator"), **kwargs)


def add_json(method, url, data, status=200, content_type=NXENTITY, **kwargs):
    responses.add(method, url, body=json.dumps(data), status=status, content_type=content_type, **kwargs)


class TestNuxeoClient:
    """Test client setup, headers and error mapping."""

    @responses.activate
    def test_fetch_root_sends_default_headers(self, sample_document):
        add_json(responses.GET, f"{API_URL}/path/", sample_document)

        client = make_client()
        root = client.repository().fetch_document_root()

        assert isinstance(root, Document)
        request = responses.calls[0].request
        assert request.headers["Accept"] == "application/json"
        assert request.headers["User-Agent"].endswith(f"NuxeoPythonClient/{__version__}")
        expected = base64.b64encode(b"Administrator:Administrator").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"

    @responses.activate
    def test_schemas_header(self, sample_document):
        add_json(responses.GET, f"{API_URL}/path/", sample_document)

        client = make_client().schemas("dublincore", "file")
        client.repository().fetch_document_root()

        assert responses.calls[0].request.headers["X-NXproperties"] == "dublincore,file"

    @responses.activate
    def test_remote_error_carries_status_and_message(self):
        add_json(
            responses.GET,
            f"{API_URL}/user/toto",
            {"entity-type": "exception", "status": 404, "message": "user does not exist"},
            status=404,
            content_type="application/json",
        )

        client = make_client()

        with pytest.raises(NuxeoRemoteError) as exc_info:
            client.user_manager().fetch_user("toto")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "user does not exist"
        assert str(exc_info.value) == "user does not exist"

    @responses.activate
    def test_remote_error_without_json_uses_reason(self):
        responses.add(responses.GET, f"{API_URL}/path/", body="boom", status=500, content_type="text/plain")

        with pytest.raises(NuxeoRemoteError) as exc_info:
            make_client().repository().fetch_document_root()

        assert exc_info.value.status_code == 500
        assert exc_info.value.response_body == "boom"

    @responses.activate
    def test_connection_error(self):
        # No registered response: responses raises ConnectionError
        with pytest.raises(NuxeoConnectionError):
            make_client().repository().fetch_document_root()

    @responses.activate
    def test_test_connection(self, sample_document):
        add_json(responses.GET, f"{API_URL}/path/", sample_document)
        assert make_client().test_connection() is True

    @responses.activate
    def test_test_connection_failure(self):
        responses.add(responses.GET, f"{API_URL}/path/", status=500, body="")
        assert make_client().test_connection() is False

    @responses.activate
    def test_server_version(self):
        responses.add(
            responses.GET,
            f"{BASE_URL}/json/cmis",
            json={"default": {"repositoryId": "default", "productVersion": "10.10-HF03"}},
        )

        version = make_client().server_version()

        assert version.is_greater_than("7.10")
        assert str(version) == "10.10-HF03"

    def test_from_config(self):
        config = Config(
            server=ServerConfig(base_url=BASE_URL + "/", timeout=10, schemas=["*"]),
            auth=AuthConfig(method="token", token="abc"),
        )

        client = NuxeoClient.from_config(config)

        assert client.base_url == BASE_URL
        assert client.timeout == 10
        assert isinstance(client.session.auth, TokenAuth)
        assert client.session.headers["X-NXproperties"] == "*"

    def test_from_invalid_config(self):
        config = Config(auth=AuthConfig(method="token"))
        with pytest.raises(ConfigValidationError):
            NuxeoClient.from_config(config)


class TestAuthentication:
    """Test authentication hooks."""

    @responses.activate
    def test_token_auth(self, sample_document):
        add_json(responses.GET, f"{API_URL}/path/", sample_document)

        NuxeoClient(BASE_URL, TokenAuth("my-token")).repository().fetch_document_root()

        assert responses.calls[0].request.headers["X-Authentication-Token"] == "my-token"

    @responses.activate
    def test_portal_sso_auth(self, sample_document):
        add_json(responses.GET, f"{API_URL}/path/", sample_document)
        auth = PortalSSOAuth("Administrator", "nuxeo5secretkey")

        NuxeoClient(BASE_URL, auth).repository().fetch_document_root()

        headers = responses.calls[0].request.headers
        clear = f"{headers['NX_TS']}:{headers['NX_RD']}:nuxeo5secretkey:Administrator"
        expected = base64.b64encode(hashlib.md5(clear.encode()).digest()).decode()
        assert headers["NX_USER"] == "Administrator"
        assert headers["NX_TOKEN"] == expected


class TestRepository:
    """Test document endpoints."""

    @responses.activate
    def test_fetch_by_id_and_path(self, sample_document):
        doc_id = sample_document["uid"]
        add_json(responses.GET, f"{API_URL}/id/{doc_id}", sample_document)
        add_json(responses.GET, f"{API_URL}/path/default-domain/workspaces/note", sample_document)

        repository = make_client().repository()

        assert repository.fetch_document_by_id(doc_id).id == doc_id
        assert repository.fetch_document_by_path("/default-domain/workspaces/note").id == doc_id

    @responses.activate
    def test_named_repository(self, sample_document):
        add_json(responses.GET, f"{API_URL}/repo/other/path/", sample_document)

        make_client().repository("other").fetch_document_root()

        assert len(responses.calls) == 1

    @responses.activate
    def test_create_document(self, sample_document):
        add_json(responses.POST, f"{API_URL}/id/root-id", sample_document, status=201)

        doc = Document.create_with_name("note", "Note")
        doc.set_property_value("dc:title", "note")
        created = make_client().repository().create_document_by_id("root-id", doc)

        assert created.type == "Note"
        sent = json.loads(responses.calls[0].request.body)
        assert sent == {
            "entity-type": "document",
            "type": "Note",
            "name": "note",
            "properties": {"dc:title": "note"},
        }

    @responses.activate
    def test_create_document_by_path_under_missing_parent(self):
        add_json(
            responses.POST,
            f"{API_URL}/path/absent",
            {"entity-type": "exception", "status": 404, "message": "/absent"},
            status=404,
            content_type="application/json",
        )

        with pytest.raises(NuxeoRemoteError) as exc_info:
            make_client().repository().create_document_by_path("/absent", Document.create_with_name("file", "File"))

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "/absent"

    @responses.activate
    def test_update_and_delete(self, sample_document):
        doc_id = sample_document["uid"]
        updated = dict(sample_document, properties={"dc:title": "note updated"})
        add_json(responses.PUT, f"{API_URL}/id/{doc_id}", updated)
        responses.add(responses.DELETE, f"{API_URL}/id/{doc_id}", status=204)

        repository = make_client().repository()
        doc = Document.create_with_id(doc_id, "Note")
        doc.set_property_value("dc:title", "note updated")

        result = repository.update_document(doc)
        repository.delete_document(result)

        assert result.get_property_value("dc:title") == "note updated"
        assert responses.calls[1].request.method == "DELETE"

    def test_update_requires_id(self):
        with pytest.raises(ValueError):
            make_client().repository().update_document(Document.create_with_name("x", "Note"))

    @responses.activate
    def test_query(self, sample_documents):
        nxql = "SELECT * FROM Note"
        add_json(
            responses.GET,
            f"{API_URL}/query",
            sample_documents,
            match=[matchers.query_param_matcher({"query": nxql, "pageSize": "10", "currentPageIndex": "0"})],
        )

        docs = make_client().repository().query(nxql, page_size=10)

        assert isinstance(docs, Documents)
        assert len(docs) == 1

    @responses.activate
    def test_fetch_children(self, sample_documents):
        add_json(responses.GET, f"{API_URL}/id/parent/@children", sample_documents)

        assert len(make_client().repository().fetch_children_by_id("parent")) == 1

    @responses.activate
    def test_fetch_blob(self):
        responses.add(
            responses.GET,
            f"{API_URL}/id/abc/@blob/file:content",
            body=b"%PDF-1.7",
            content_type="application/pdf",
            headers={"Content-Disposition": 'attachment; filename="invoice.pdf"'},
        )

        blob = make_client().repository().fetch_blob_by_id("abc")

        assert isinstance(blob, Blob)
        assert blob.filename == "invoice.pdf"
        assert blob.mime_type == "application/pdf"
        assert blob.read_bytes() == b"%PDF-1.7"

    @responses.activate
    def test_fetch_workflow_models(self):
        add_json(
            responses.GET,
            f"{API_URL}/workflowModel",
            {
                "entity-type": "workflows",
                "entries": [
                    {"entity-type": "workflow", "name": "ParallelDocumentReview"},
                    {"entity-type": "workflow", "name": "SerialDocumentReview"},
                ],
            },
        )

        workflows = make_client().repository().fetch_workflow_models()

        assert isinstance(workflows, Workflows)
        assert [w.name for w in workflows] == ["ParallelDocumentReview", "SerialDocumentReview"]

    @responses.activate
    def test_start_workflow_instance(self):
        add_json(
            responses.POST,
            f"{API_URL}/id/abc/@workflow",
            {"entity-type": "workflow", "id": "wf-1", "workflowModelName": "SerialDocumentReview", "state": "running"},
            status=201,
        )

        workflow = make_client().repository().start_workflow_instance("abc", "SerialDocumentReview")

        assert workflow.id == "wf-1"
        assert workflow.state == "running"
        sent = json.loads(responses.calls[0].request.body)
        assert sent["workflowModelName"] == "SerialDocumentReview"
        assert sent["attachedDocumentIds"] == ["abc"]


class TestUserManager:
    """Test user and group endpoints."""

    @responses.activate
    def test_create_fetch_delete_user(self, sample_user):
        add_json(responses.POST, f"{API_URL}/user", sample_user, status=201)
        add_json(responses.GET, f"{API_URL}/user/toto", sample_user)
        responses.add(responses.DELETE, f"{API_URL}/user/toto", status=204)

        users = make_client().user_manager()
        created = users.create_user(User(username="toto", last_name="to", email="toto@nuxeo.com", password="totopwd"))
        fetched = users.fetch_user("toto")
        users.delete_user("toto")

        assert created.id == "toto"
        assert fetched.email == "toto@nuxeo.com"
        sent = json.loads(responses.calls[0].request.body)
        assert sent["properties"]["password"] == "totopwd"
        assert len(responses.calls) == 3

    @responses.activate
    def test_create_fetch_delete_group(self):
        group_data = {
            "entity-type": "group",
            "groupname": "totogroup",
            "grouplabel": "Toto Group",
            "memberUsers": ["Administrator"],
            "memberGroups": ["members"],
        }
        add_json(responses.POST, f"{API_URL}/group", group_data, status=201)
        add_json(responses.GET, f"{API_URL}/group/totogroup", group_data)
        responses.add(responses.DELETE, f"{API_URL}/group/totogroup", status=204)

        users = make_client().user_manager()
        group = Group(group_name="totogroup", group_label="Toto Group", member_users=["Administrator"])

        assert users.create_group(group).group_label == "Toto Group"
        assert users.fetch_group("totogroup").member_groups == ["members"]
        users.delete_group("totogroup")


class TestOperation:
    """Test automation calls."""

    @responses.activate
    def test_execute_discovers_entity(self, sample_document):
        add_json(
            responses.POST,
            f"{API_URL}/automation/Document.Fetch",
            sample_document,
            content_type=f"{NXENTITY}; nuxeo-entity=document",
        )

        result = make_client().operation("Document.Fetch").param("value", "/").execute()

        assert isinstance(result, Document)
        request = responses.calls[0].request
        assert request.headers["Content-Type"] == "application/json+nxrequest"
        assert json.loads(request.body) == {"params": {"value": "/"}, "context": {}}

    @responses.activate
    def test_execute_unknown_entity_returns_raw_text(self):
        body = '{"entity-type":"widget","name":"sprocket"}'
        responses.add(
            responses.POST,
            f"{API_URL}/automation/Custom.Op",
            body=body,
            content_type="application/json",
        )

        assert make_client().operation("Custom.Op").execute() == body

    @responses.activate
    def test_execute_with_registered_entity(self):
        class Widget:
            def __init__(self, name):
                self.name = name

            @classmethod
            def from_dict(cls, data):
                return cls(data["name"])

        responses.add(
            responses.POST,
            f"{API_URL}/automation/Custom.Op",
            body='{"entity-type":"widget","name":"sprocket"}',
            content_type="application/json",
        )

        client = make_client()
        client.register_entity("widget", Widget)
        result = client.operation("Custom.Op").execute()

        assert isinstance(result, Widget)
        assert result.name == "sprocket"

    @responses.activate
    def test_execute_returns_blobs(self):
        responses.add(
            responses.POST,
            f"{API_URL}/automation/Blob.Get",
            body=build_multipart([
                ("a.txt", "text/plain", b"A"),
                ("b.txt", "text/plain", b"B"),
            ]),
            content_type=f"multipart/mixed; boundary={BOUNDARY}",
        )

        blobs = make_client().operation("Blob.Get").input("doc:/file").execute()

        assert isinstance(blobs, Blobs)
        assert blobs.filenames == ["a.txt", "b.txt"]
        assert json.loads(responses.calls[0].request.body)["input"] == "doc:/file"

    @responses.activate
    def test_execute_with_blob_input(self, tmp_path, sample_document):
        path = tmp_path / "sample.txt"
        path.write_bytes(b"attached content")
        add_json(responses.POST, f"{API_URL}/automation/Blob.AttachOnDocument", sample_document)

        make_client().operation("Blob.AttachOnDocument").param("document", "/file").input(
            Blob.from_file(path)
        ).execute()

        request = responses.calls[0].request
        assert request.headers["Content-Type"].startswith("multipart/related")
        assert b"Content-ID: request" in request.body
        assert b'"document": "/file"' in request.body
        assert b'filename="sample.txt"' in request.body
        assert b"attached content" in request.body
        assert b'"input"' not in request.body

    def test_document_input_reference(self):
        doc = Document.create_with_id("abc", "Note")
        operation = make_client().operation("Document.Update").input(doc).param("target", doc)

        assert operation.to_request() == {
            "params": {"target": "abc"},
            "context": {},
            "input": "doc:abc",
        }

    def test_documents_input_reference(self):
        docs = [Document.create_with_id("a", "Note"), Document.create_with_id("b", "Note")]
        operation = make_client().operation("Document.Delete").input(docs)

        assert operation.to_request()["input"] == "docs:a,b"


class TestTruncatedBody:
    """Connections dropped mid-body surface as local errors."""

    def test_binary_body_cut_short(self, blob_dir):
        with truncated_server("application/pdf", b"%PDF-1.7 x") as url:
            client = NuxeoClient(url, BasicAuth("Administrator", "Administrator"))

            with pytest.raises(NuxeoClientError):
                client.call("GET", "/x")

        assert list(blob_dir.iterdir()) == []

    def test_json_body_cut_short(self):
        with truncated_server("application/json", b'{"value": ') as url:
            client = NuxeoClient(url, BasicAuth("Administrator", "Administrator"))

            with pytest.raises(NuxeoClientError):
                client.call("GET", "/x", target=dict)

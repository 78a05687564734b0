"""
Document repository endpoints.
"""

import logging
from typing import TYPE_CHECKING, Optional, Union
from urllib.parse import quote

from ..marshaller import Blob
from ..objects import Document, Documents, Workflow, Workflows

if TYPE_CHECKING:
    from .client import NuxeoClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def _path_segment(path: str) -> str:
    return quote(path.strip("/"), safe="/")


class Repository:
    """
    Document CRUD, queries and workflows for one repository.

    A ``None`` name targets the server's default repository.
    """

    def __init__(self, client: "NuxeoClient", name: Optional[str] = None):
        self.client = client
        self.name = name

    def _endpoint(self, path: str) -> str:
        if self.name:
            path = f"repo/{quote(self.name, safe='')}/{path}"
        return self.client.api_path(path)

    def fetch_document_root(self) -> Document:
        return self.client.call("GET", self._endpoint("path/"), target=Document)

    def fetch_document_by_id(self, document_id: str) -> Document:
        return self.client.call("GET", self._endpoint(f"id/{document_id}"), target=Document)

    def fetch_document_by_path(self, path: str) -> Document:
        return self.client.call(
            "GET", self._endpoint(f"path/{_path_segment(path)}"), target=Document
        )

    def fetch_children_by_id(self, parent_id: str) -> Documents:
        return self.client.call(
            "GET", self._endpoint(f"id/{parent_id}/@children"), target=Documents
        )

    def query(
        self,
        nxql: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        current_page_index: int = 0,
    ) -> Documents:
        """
        Run an NXQL query.

        Args:
            nxql: Query, e.g. "SELECT * FROM Document WHERE ecm:primaryType = 'Note'"
            page_size: Results per page
            current_page_index: Zero-based page index

        Returns:
            Documents page
        """
        params = {
            "query": nxql,
            "pageSize": page_size,
            "currentPageIndex": current_page_index,
        }
        return self.client.call("GET", self._endpoint("query"), target=Documents, params=params)

    def create_document_by_id(self, parent_id: str, document: Document) -> Document:
        return self.client.call(
            "POST", self._endpoint(f"id/{parent_id}"), target=Document, json_data=document.to_dict()
        )

    def create_document_by_path(self, parent_path: str, document: Document) -> Document:
        return self.client.call(
            "POST",
            self._endpoint(f"path/{_path_segment(parent_path)}"),
            target=Document,
            json_data=document.to_dict(),
        )

    def update_document(self, document: Document) -> Document:
        if not document.id:
            raise ValueError("Document to update has no id")
        return self.client.call(
            "PUT", self._endpoint(f"id/{document.id}"), target=Document, json_data=document.to_dict()
        )

    def delete_document(self, document: Union[Document, str]) -> None:
        document_id = document.id if isinstance(document, Document) else document
        if not document_id:
            raise ValueError("Document to delete has no id")
        self.client.send("DELETE", self._endpoint(f"id/{document_id}"))
        logger.debug(f"Deleted document {document_id}")

    def fetch_blob_by_id(self, document_id: str, xpath: str = "file:content") -> Blob:
        """Download a document's blob property."""
        return self.client.call(
            "GET", self._endpoint(f"id/{document_id}/@blob/{xpath}"), target=Blob
        )

    def fetch_workflow_models(self) -> Workflows:
        return self.client.call("GET", self._endpoint("workflowModel"), target=Workflows)

    def fetch_workflow_instances(self, document_id: str) -> Workflows:
        return self.client.call(
            "GET", self._endpoint(f"id/{document_id}/@workflow"), target=Workflows
        )

    def start_workflow_instance(self, document_id: str, workflow_model_name: str) -> Workflow:
        workflow = Workflow(
            workflow_model_name=workflow_model_name,
            attached_document_ids=[document_id],
        )
        return self.client.call(
            "POST",
            self._endpoint(f"id/{document_id}/@workflow"),
            target=Workflow,
            json_data=workflow.to_dict(),
        )

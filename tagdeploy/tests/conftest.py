from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import git
import pytest
from botocore.exceptions import ClientError

ACTOR = git.Actor("Deploy Bot", "deploy@example.com")


# -------- git --------

def commit_file(repo: git.Repo, relpath: str, content: str, message: str = "update") -> git.Commit:
    path = Path(repo.working_tree_dir) / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    repo.index.add([str(path)])
    return repo.index.commit(message, author=ACTOR, committer=ACTOR)


@pytest.fixture
def repo(tmp_path) -> git.Repo:
    """A repository with one commit containing dist/index.js."""
    r = git.Repo.init(tmp_path)
    with r.config_writer() as cw:
        cw.set_value("user", "name", ACTOR.name)
        cw.set_value("user", "email", ACTOR.email)
    commit_file(r, "dist/index.js", "exports.handler = async () => 'v1';\n", "initial")
    return r


# -------- lambda --------

def client_error(code: str, op: str, message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, op)


def version_item(version: str, last_modified: str = "2020-01-01T00:00:00.000+0000") -> Dict[str, Any]:
    return {"Version": version, "LastModified": last_modified, "FunctionName": "api"}


class FakePaginator:
    def __init__(self, pages: List[Dict[str, Any]], error: Optional[Exception] = None):
        self._pages = pages
        self._error = error
        self.seen_kwargs = None

    def paginate(self, **kwargs):
        self.seen_kwargs = kwargs
        if self._error is not None:
            raise self._error
        for p in self._pages:
            yield p


class FakeLambda:
    """Just enough of the Lambda client for publish + garbage collection."""

    def __init__(
        self,
        versions: Optional[List[Dict[str, Any]]] = None,
        next_version: int = 12,
        publish_error: Optional[Exception] = None,
        publish_response: Optional[Dict[str, Any]] = None,
        list_error: Optional[Exception] = None,
        fail_delete: Dict[str, Exception] = None,
    ):
        self.versions = list(versions) if versions is not None else [version_item("$LATEST")]
        self.next_version = next_version
        self.publish_error = publish_error
        self.publish_response = publish_response
        self.list_error = list_error
        self.fail_delete = fail_delete or {}
        self.update_calls: List[Dict[str, Any]] = []
        self.delete_calls: List[Dict[str, Any]] = []
        self.last_paginator: Optional[FakePaginator] = None

    def update_function_code(self, **kwargs):
        self.update_calls.append(kwargs)
        if self.publish_error is not None:
            raise self.publish_error
        if self.publish_response is not None:
            return self.publish_response
        version = str(self.next_version)
        self.next_version += 1
        self.versions.append(version_item(version, "2024-06-01T00:00:00.000+0000"))
        return {"FunctionName": kwargs["FunctionName"], "Version": version}

    def get_paginator(self, name: str):
        assert name == "list_versions_by_function"
        self.last_paginator = FakePaginator([{"Versions": list(self.versions)}], self.list_error)
        return self.last_paginator

    def delete_function(self, **kwargs):
        self.delete_calls.append(kwargs)
        qualifier = kwargs["Qualifier"]
        if qualifier in self.fail_delete:
            raise self.fail_delete[qualifier]
        self.versions = [v for v in self.versions if v["Version"] != qualifier]
        return {}

    @property
    def deleted(self) -> List[str]:
        return [c["Qualifier"] for c in self.delete_calls if c["Qualifier"] not in self.fail_delete]


@pytest.fixture
def fake_lambda() -> FakeLambda:
    return FakeLambda()

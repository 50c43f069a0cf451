import pytest
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import ResourceNotFoundError

from capr.api.constants import CLUSTER_API_VERSION, CLUSTER_NAME_LABEL
from capr.api.models import ObjectReference
from capr.errors import AlreadyExistsError, NotFoundError, StoreError
from capr.store import kube
from capr.store.kube import KubernetesStore


class _Resp:
    def __init__(self, data):
        self.data = data

    def to_dict(self):
        return self.data


class FakeResource:
    def __init__(self):
        self.calls = []
        self.fail = None

    def _maybe_fail(self):
        if self.fail is not None:
            raise ApiException(status=self.fail, reason="nope")

    def get(self, name=None, namespace=None, label_selector=None):
        self.calls.append(("get", name, namespace, label_selector))
        self._maybe_fail()
        if name is None:
            return _Resp({"items": [{"metadata": {"name": "m1"}}]})
        return _Resp({"apiVersion": CLUSTER_API_VERSION, "kind": "Machine", "metadata": {"name": name}})

    def create(self, body, namespace=None):
        self.calls.append(("create", namespace))
        self._maybe_fail()
        return _Resp(body)

    def delete(self, name, namespace=None):
        self.calls.append(("delete", name, namespace))
        self._maybe_fail()


class FakeResources:
    def __init__(self, resource):
        self.resource = resource

    def get(self, api_version, kind):
        if kind == "Unknown":
            raise ResourceNotFoundError(f"{kind} not found")
        return self.resource


@pytest.fixture
def resource(monkeypatch):
    res = FakeResource()

    class FakeDynamicClient:
        def __init__(self, api_client):
            self.resources = FakeResources(res)

    monkeypatch.setattr(kube.dynamic, "DynamicClient", FakeDynamicClient)
    return res


@pytest.fixture
def store(resource):
    return KubernetesStore(api_client=object())


REF = ObjectReference(api_version=CLUSTER_API_VERSION, kind="Machine", name="m1", namespace="default")


def test_list_fills_type_meta_and_selector(store, resource):
    items = store.list(CLUSTER_API_VERSION, "Machine", namespace="default", labels={CLUSTER_NAME_LABEL: "c1"})

    assert items == [{"apiVersion": CLUSTER_API_VERSION, "kind": "Machine", "metadata": {"name": "m1"}}]
    assert resource.calls == [("get", None, "default", f"{CLUSTER_NAME_LABEL}=c1")]


def test_get_create_delete(store, resource):
    assert store.get(REF)["metadata"]["name"] == "m1"
    body = {"apiVersion": CLUSTER_API_VERSION, "kind": "Machine", "metadata": {"name": "m2", "namespace": "default"}}
    assert store.create(body) == body
    store.delete(REF)
    assert [c[0] for c in resource.calls] == ["get", "create", "delete"]


@pytest.mark.parametrize("status,exc", [(404, NotFoundError), (409, AlreadyExistsError), (500, StoreError)])
def test_api_errors_are_translated(store, resource, status, exc):
    resource.fail = status
    with pytest.raises(exc) as info:
        store.delete(REF)
    assert isinstance(info.value.__cause__, ApiException)


def test_unserved_kind(store):
    with pytest.raises(StoreError, match="not served"):
        store.get(REF.model_copy(update={"kind": "Unknown"}))

"""
In-memory stand-ins for the pymongo collections and the payment gateway.

FakeCollection supports the subset of the pymongo API the service uses:
equality and dotted-path filters, $ne/$in/$regex/$elemMatch, and
$set/$inc/$push/$pull updates.
"""
import copy
import random
import re
from types import SimpleNamespace

from bson import ObjectId

from errors import GatewayError
from payments import PaymentConfirmation


# ============================================================================
# FAKE MONGO
# ============================================================================

def _resolve(value, parts):
    if not parts:
        return [value]
    if isinstance(value, list):
        return [r for item in value for r in _resolve(item, parts)]
    if isinstance(value, dict) and parts[0] in value:
        return _resolve(value[parts[0]], parts[1:])
    return []


def _equals(value, expected):
    return value == expected or (isinstance(value, list) and expected in value)


def _match_condition(values, cond):
    if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op == "$ne":
                if any(_equals(v, arg) for v in values):
                    return False
            elif op == "$in":
                if not any(_equals(v, a) for v in values for a in arg):
                    return False
            elif op == "$regex":
                flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
                if not any(isinstance(v, str) and re.search(arg, v, flags) for v in values):
                    return False
            elif op == "$elemMatch":
                if not any(isinstance(v, list) and any(isinstance(e, dict) and matches(e, arg) for e in v)
                           for v in values):
                    return False
            elif op == "$options":
                continue
            else:
                raise NotImplementedError(op)
        return True
    return any(_equals(v, cond) for v in values)


def matches(doc, filter_dict):
    return all(_match_condition(_resolve(doc, key.split(".")), cond) for key, cond in (filter_dict or {}).items())


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, spec):
        for key, direction in reversed(spec):
            self._docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def skip(self, n):
        self._docs = self._docs[n:]
        return self

    def limit(self, n):
        if n:
            self._docs = self._docs[:n]
        return self

    def __iter__(self):
        return iter(self._docs)


class FakeCollection:
    def __init__(self):
        self.docs = []

    def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find_one(self, filter_dict=None):
        for doc in self.docs:
            if matches(doc, filter_dict):
                return copy.deepcopy(doc)
        return None

    def find(self, filter_dict=None):
        return FakeCursor([copy.deepcopy(d) for d in self.docs if matches(d, filter_dict)])

    def count_documents(self, filter_dict):
        return sum(1 for d in self.docs if matches(d, filter_dict))

    def update_one(self, filter_dict, update):
        for doc in self.docs:
            if matches(doc, filter_dict):
                before = copy.deepcopy(doc)
                self._apply(doc, update)
                return SimpleNamespace(matched_count=1, modified_count=int(before != doc))
        return SimpleNamespace(matched_count=0, modified_count=0)

    def delete_one(self, filter_dict):
        for i, doc in enumerate(self.docs):
            if matches(doc, filter_dict):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def aggregate(self, pipeline):
        docs = [copy.deepcopy(d) for d in self.docs]
        for stage in pipeline:
            if "$match" in stage:
                docs = [d for d in docs if matches(d, stage["$match"])]
            elif "$sample" in stage:
                docs = random.sample(docs, min(stage["$sample"]["size"], len(docs)))
            else:
                raise NotImplementedError(stage)
        return iter(docs)

    @staticmethod
    def _apply(doc, update):
        for op, fields in update.items():
            for key, value in fields.items():
                if op == "$set":
                    doc[key] = copy.deepcopy(value)
                elif op == "$inc":
                    doc[key] = doc.get(key, 0) + value
                elif op == "$push":
                    doc.setdefault(key, []).append(copy.deepcopy(value))
                elif op == "$pull":
                    doc[key] = [e for e in doc.get(key, [])
                                if not (matches(e, value) if isinstance(value, dict) else e == value)]
                else:
                    raise NotImplementedError(op)


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())

    def list_collection_names(self):
        return list(self.collections)


class FakeGateway:
    """Records payment intents; set `error` to make the next capture fail."""

    def __init__(self):
        self.calls = []
        self.error = None

    def create_payment_intent(self, amount, currency, payment_method, metadata):
        self.calls.append({"amount": amount, "currency": currency,
                           "payment_method": payment_method, "metadata": metadata})
        if self.error:
            raise GatewayError(self.error)
        n = len(self.calls)
        return PaymentConfirmation(payment_intent_id=f"pi_test_{n}",
                                   client_secret=f"pi_test_{n}_secret_abc", status="succeeded")


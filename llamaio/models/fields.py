# llamaio/models/fields.py
from collections import namedtuple

# attr: mapped attribute on the model; kind: how query values are coerced
FieldSpec = namedtuple("FieldSpec", ["attr", "kind"])

ID = "id"
STRING = "string"
BOOLEAN = "boolean"
TIMESTAMP = "timestamp"
LIST = "list"

# Kinds that can appear in "where"; list fields match on membership
FILTERABLE_KINDS = {ID, STRING, BOOLEAN, TIMESTAMP, LIST}
# Kinds that can appear in "sort"
SORTABLE_KINDS = {ID, STRING, BOOLEAN, TIMESTAMP}

# Operators a list field accepts in "where"
LIST_OPERATORS = {"$eq", "$ne", "$in", "$nin"}

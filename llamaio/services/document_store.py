# llamaio/services/document_store.py
"""
Document-style access to a mapped table.

Translates a validated ListQuery into a SQLAlchemy query over one model and
renders rows back into API documents.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from llamaio.models import fields as field_kinds
from llamaio.utils.errors import MalformedParameter, NotFound
from llamaio.utils.query_params import Constraint, ListQuery, Projection, id_lookup

logger = logging.getLogger(__name__)

_OPERATORS = {
    "$eq": lambda column, value: column == value,
    "$ne": lambda column, value: column != value,
    "$gt": lambda column, value: column > value,
    "$gte": lambda column, value: column >= value,
    "$lt": lambda column, value: column < value,
    "$lte": lambda column, value: column <= value,
    "$in": lambda column, value: column.in_(value),
    "$nin": lambda column, value: column.not_in(value),
}


class DocumentCollection:
    """One collection (users or tasks) seen through its API field names"""

    def __init__(self, db: Session, model, out_schema: Type[BaseModel]):
        self.db = db
        self.model = model
        self.out_schema = out_schema

    def column(self, api_field: str):
        return getattr(self.model, self.model.API_FIELDS[api_field].attr)

    def criteria(self, constraints: List[Constraint]) -> list:
        criteria = []
        for constraint in constraints:
            if self.model.API_FIELDS[constraint.field].kind == field_kinds.LIST:
                criteria.append(self.membership(constraint))
            else:
                criteria.append(
                    _OPERATORS[constraint.op](self.column(constraint.field), constraint.value)
                )
        return criteria

    def membership(self, constraint: Constraint):
        """
        Match a JSON list column on its elements.

        $eq/$in match documents holding the value (any of the values), $ne/$nin
        documents holding none of them.
        """
        column = self.column(constraint.field)
        if self.db.get_bind().dialect.name == "postgresql":
            elements = func.json_array_elements_text(column).table_valued("value")
        else:
            elements = func.json_each(column).table_valued("value")

        values = constraint.value if constraint.op in ("$in", "$nin") else [constraint.value]
        holds_any = select(elements.c.value).where(elements.c.value.in_(values)).exists()
        return ~holds_any if constraint.op in ("$ne", "$nin") else holds_any

    def count(self, constraints: List[Constraint]) -> int:
        return self.db.query(self.model).filter(*self.criteria(constraints)).count()

    def find(self, list_query: ListQuery) -> list:
        query = self.db.query(self.model).filter(*self.criteria(list_query.constraints))

        order_by = []
        for api_field, direction in list_query.sort:
            column = self.column(api_field)
            order_by.append(column.asc() if direction > 0 else column.desc())
        # Stable order: ids grow with creation time
        if "_id" not in {api_field for api_field, _ in list_query.sort}:
            order_by.append(self.model.id.asc())
        query = query.order_by(*order_by)

        if list_query.skip:
            query = query.offset(list_query.skip)
        if list_query.limit is not None:
            query = query.limit(list_query.limit)

        results = query.all()
        logger.debug(
            f"{self.model.__tablename__} find: {len(list_query.constraints)} constraints, "
            f"skip={list_query.skip} limit={list_query.limit} -> {len(results)} rows"
        )
        return results

    def run_listing(self, list_query: ListQuery, not_found_message: str):
        """
        Run a listing request: an int when count was asked for, else documents.

        A skip that passes every match is a MalformedParameter. A where that
        only names ids must find all of them, otherwise NotFound (with the
        missing ids for an $in list).
        """
        if list_query.count:
            return list_query.page_count(self.count(list_query.constraints))

        if list_query.skip and list_query.skip >= self.count(list_query.constraints):
            raise MalformedParameter("Invalid Parameter")

        single_id, many_ids = id_lookup(list_query.where)
        if many_ids is not None:
            missing = self.missing_ids(many_ids)
            if missing:
                raise NotFound("Ids not found", {"missing": missing})

        rows = self.find(list_query)
        if single_id is not None and not rows and self.get(single_id) is None:
            raise NotFound(not_found_message)
        return self.to_documents(rows, list_query.projection)

    def get(self, doc_id: str):
        return self.db.query(self.model).filter(self.model.id == doc_id).first()

    def missing_ids(self, doc_ids: List[str]) -> List[str]:
        """Ids from ``doc_ids`` with no matching row, in request order"""
        found = {
            row[0] for row in
            self.db.query(self.model.id).filter(self.model.id.in_(doc_ids)).all()
        }
        return [doc_id for doc_id in doc_ids if doc_id not in found]

    def to_document(self, row, projection: Optional[Projection] = None) -> Dict[str, Any]:
        document = self.out_schema.model_validate(row).model_dump(by_alias=True)
        if projection is not None:
            document = projection.apply(document)
        return document

    def to_documents(self, rows, projection: Optional[Projection] = None) -> List[Dict[str, Any]]:
        return [self.to_document(row, projection) for row in rows]

"""
ParameterEncoder module for turning export options into query parameters
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union


logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when export inputs are malformed, before any network call"""
    pass


@dataclass
class ExportRequest:
    """Logical filter and projection options for a single dataset export"""
    dataset: str
    select: Optional[Sequence[str]] = None
    search: Optional[str] = None
    where: Optional[Union[str, Sequence[str]]] = None
    conjunction: Optional[str] = None
    sort: Optional[str] = None


class ParameterEncoder:
    """Encodes an ExportRequest into a flat query parameter mapping"""

    VALID_CONJUNCTIONS = {'and', 'or'}
    SORT_PREFIXES = ('+', '-')

    @staticmethod
    def validate_identifiers(dataset: Optional[str], api_key: Optional[str]) -> None:
        """
        Check the mandatory dataset identifier and API key

        Raises:
            ValidationError: If either value is missing or empty
        """
        if not isinstance(dataset, str) or not dataset.strip():
            raise ValidationError("A dataset identifier is required")
        if not isinstance(api_key, str) or not api_key.strip():
            raise ValidationError("An API key is required")

    @staticmethod
    def encode(request: ExportRequest) -> Dict[str, str]:
        """
        Build query parameters for the export initiation request

        Args:
            request: ExportRequest with the caller's options

        Returns:
            Mapping of parameter name to string value, unset options omitted

        Raises:
            ValidationError: If more than one where-clause is given, or the
                conjunction or sort options are malformed
        """
        params: Dict[str, str] = {}

        if request.search:
            params['search'] = request.search

        where = ParameterEncoder._single_where(request.where)
        if where:
            params['where'] = where

        select = ParameterEncoder._encode_select(request.select)
        if select:
            params['select'] = select

        if request.conjunction:
            conjunction = request.conjunction.lower()
            if conjunction not in ParameterEncoder.VALID_CONJUNCTIONS:
                raise ValidationError(
                    f"conjunction must be one of 'and' or 'or', got '{request.conjunction}'"
                )
            params['conjunction'] = conjunction

        if request.sort:
            if not request.sort.startswith(ParameterEncoder.SORT_PREFIXES) or len(request.sort) < 2:
                raise ValidationError(
                    f"sort must be a column name prefixed with '+' or '-', got '{request.sort}'"
                )
            params['sort'] = request.sort

        logger.debug(f"Encoded export parameters for {request.dataset}: {sorted(params)}")
        return params

    @staticmethod
    def _single_where(where: Optional[Union[str, Sequence[str]]]) -> Optional[str]:
        if where is None or isinstance(where, str):
            return where or None

        clauses = [clause for clause in where if clause]
        if len(clauses) > 1:
            raise ValidationError("only one filter clause per request is supported")
        return clauses[0] if clauses else None

    @staticmethod
    def _encode_select(select: Optional[Sequence[str]]) -> Optional[str]:
        if not select:
            return None
        if isinstance(select, str):
            select = [select]

        # Ordered set: keep first occurrence
        columns: List[str] = []
        for column in select:
            if column and column not in columns:
                columns.append(column)
        return ','.join(columns) or None

import numpy as np
from scipy.sparse import csr_matrix


class ItemAttributes:
    """Binary item attributes, backed by a sparse (n_items, n_attributes) matrix.

    Items past the last stored row have no attributes.
    """

    def __init__(self, matrix):
        csr = csr_matrix(matrix, copy=True)
        csr.sum_duplicates()
        csr.eliminate_zeros()
        csr.data[:] = 1.0
        csr.sort_indices()

        self.matrix = csr
        self._attributes = [
            frozenset(csr.indices[csr.indptr[i]:csr.indptr[i + 1]].tolist())
            for i in range(csr.shape[0])
        ]

    @classmethod
    def from_dict(cls, attributes_by_item, num_items=None, num_attributes=None):
        """Build from a mapping of internal item ID -> iterable of attribute IDs."""
        rows, cols = [], []
        for item, attributes in attributes_by_item.items():
            for a in attributes:
                rows.append(item)
                cols.append(a)

        if num_items is None:
            num_items = max(attributes_by_item, default=-1) + 1
        if num_attributes is None:
            num_attributes = max(cols, default=-1) + 1

        matrix = csr_matrix(
            (np.ones(len(rows)), (rows, cols)),
            shape=(num_items, num_attributes)
        )
        return cls(matrix)

    @property
    def num_items(self):
        return self.matrix.shape[0]

    @property
    def num_attributes(self):
        return self.matrix.shape[1]

    def get_attributes(self, item):
        if 0 <= item < len(self._attributes):
            return self._attributes[item]
        return frozenset()

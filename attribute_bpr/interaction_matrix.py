# attribute_bpr/interaction_matrix.py
import numpy as np
from scipy.sparse import csr_matrix

from attribute_bpr.item_attributes import ItemAttributes


class InteractionMatrixBuilder:
    """Maps raw user/item/attribute IDs to dense internal IDs.

    build() turns an interaction DataFrame into a binary (n_users, n_items)
    csr_matrix; build_attributes() turns an item attribute DataFrame into
    ItemAttributes using the same item mapping.
    """

    def __init__(self):
        self.user_map = None
        self.item_map = None
        self.attribute_map = None
        self.users = None
        self.items = None
        self.attributes = None

    def build(self, df):
        user_cat = df['user_id'].astype('category')
        item_cat = df['item_id'].astype('category')

        self.users = list(user_cat.cat.categories)
        self.items = list(item_cat.cat.categories)
        self.user_map = {u: i for i, u in enumerate(self.users)}
        self.item_map = {it: i for i, it in enumerate(self.items)}

        matrix = csr_matrix(
            (np.ones(len(df)), (user_cat.cat.codes, item_cat.cat.codes)),
            shape=(len(self.users), len(self.items))
        )
        # repeated (user, item) records collapse into one positive interaction
        matrix.sum_duplicates()
        matrix.data[:] = 1.0
        return matrix

    @classmethod
    def from_mappings(cls, mappings):
        """Restore a builder from the output of mappings()."""
        builder = cls()
        builder.users = list(mappings['users'])
        builder.items = list(mappings['items'])
        builder.user_map = {u: i for i, u in enumerate(builder.users)}
        builder.item_map = {it: i for i, it in enumerate(builder.items)}
        if mappings.get('attributes') is not None:
            builder.attributes = list(mappings['attributes'])
            builder.attribute_map = {a: i for i, a in enumerate(builder.attributes)}
        return builder

    def _item_index(self, item_id):
        if item_id not in self.item_map:
            self.item_map[item_id] = len(self.items)
            self.items.append(item_id)
        return self.item_map[item_id]

    def _attribute_index(self, attribute_id):
        if attribute_id not in self.attribute_map:
            self.attribute_map[attribute_id] = len(self.attributes)
            self.attributes.append(attribute_id)
        return self.attribute_map[attribute_id]

    def build_attributes(self, df):
        """Build ItemAttributes from a DataFrame of (item_id, attribute_id) pairs.

        Items never seen in the interaction data get new internal IDs after
        the known ones, so they stay outside the training item range.
        Attribute IDs keep an existing mapping and extend it for new ones.
        """
        if self.item_map is None:
            raise ValueError("Interaction data must be built before item attributes.")

        if self.attribute_map is None:
            self.attributes = list(df['attribute_id'].astype('category').cat.categories)
            self.attribute_map = {a: i for i, a in enumerate(self.attributes)}

        item_codes = np.array([self._item_index(i) for i in df['item_id']], dtype=np.int64)
        attr_codes = np.array([self._attribute_index(a) for a in df['attribute_id']], dtype=np.int64)

        matrix = csr_matrix(
            (np.ones(len(df)), (item_codes, attr_codes)),
            shape=(len(self.items), len(self.attributes))
        )
        return ItemAttributes(matrix)

    def mappings(self):
        return {
            'users': self.users,
            'items': self.items,
            'attributes': self.attributes,
        }


class InteractionIndex:
    """Read-only bidirectional view of a binary user-item matrix.

    Rows are users, columns are items. Both directions come from the same
    matrix, so user u contains item i iff item i contains user u.
    """

    def __init__(self, matrix):
        csr = csr_matrix(matrix, copy=True)
        csr.sum_duplicates()
        csr.eliminate_zeros()
        csr.data[:] = 1.0
        csr.sort_indices()

        self.matrix = csr
        self._csc = csr.tocsc()
        self._user_items = [
            frozenset(csr.indices[csr.indptr[u]:csr.indptr[u + 1]].tolist())
            for u in range(csr.shape[0])
        ]
        self.item_counts = np.diff(self._csc.indptr)
        self.user_counts = np.diff(csr.indptr)

    @classmethod
    def from_pairs(cls, pairs, num_users=None, num_items=None):
        """Build an index from (user, item) pairs of internal IDs."""
        pairs = np.asarray(list(pairs), dtype=np.int64).reshape(-1, 2)
        if num_users is None:
            num_users = int(pairs[:, 0].max()) + 1 if len(pairs) else 0
        if num_items is None:
            num_items = int(pairs[:, 1].max()) + 1 if len(pairs) else 0
        matrix = csr_matrix(
            (np.ones(len(pairs)), (pairs[:, 0], pairs[:, 1])),
            shape=(num_users, num_items)
        )
        return cls(matrix)

    @property
    def num_users(self):
        return self.matrix.shape[0]

    @property
    def num_items(self):
        return self.matrix.shape[1]

    @property
    def max_user_id(self):
        return self.num_users - 1

    @property
    def max_item_id(self):
        return self.num_items - 1

    @property
    def num_entries(self):
        """Number of stored positive interactions."""
        return self.matrix.nnz

    def user_items(self, user):
        return self._user_items[user]

    def user_item_array(self, user):
        """Sorted item IDs of a user, as a numpy array."""
        return self.matrix.indices[self.matrix.indptr[user]:self.matrix.indptr[user + 1]]

    def item_users(self, item):
        return frozenset(self._csc.indices[self._csc.indptr[item]:self._csc.indptr[item + 1]].tolist())

    def contains(self, user, item):
        return item in self._user_items[user]

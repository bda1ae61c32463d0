"""Dense per-user attribute weights and their plain-text file format.

File layout, one record per line:

    <num_rows> <num_cols>
    <row> <col> <value>
    ...

Values are written with repr(), so they always use '.' as decimal separator
and read back to the identical float. Reading stops at the first line that
does not split into exactly three fields.
"""

import numpy as np


class WeightMatrix:
    """Matrix of shape (num_users, num_attributes), owned by one recommender.

    get() and set() do no bounds checking; callers validate IDs.
    """

    def __init__(self, num_rows, num_cols):
        self.values = np.zeros((num_rows, num_cols), dtype=np.float64)

    @property
    def num_rows(self):
        return self.values.shape[0]

    @property
    def num_cols(self):
        return self.values.shape[1]

    @property
    def shape(self):
        return self.values.shape

    def init_normal(self, mean, stdev, rng):
        """Fill every entry independently from N(mean, stdev**2)."""
        self.values[:] = rng.normal(mean, stdev, size=self.values.shape)

    def get(self, row, col):
        return self.values[row, col]

    def set(self, row, col, value):
        self.values[row, col] = value

    def row(self, row):
        return self.values[row]

    def write(self, stream):
        stream.write(f"{self.num_rows} {self.num_cols}\n")
        for i in range(self.num_rows):
            for j in range(self.num_cols):
                stream.write(f"{i} {j} {float(self.values[i, j])!r}\n")

    @classmethod
    def read(cls, stream):
        """Rebuild a matrix from the text format.

        The header defines both dimensions. Entries missing from the file stay 0.

        Raises:
            ValueError: If the header is not two non-negative integers.
            IndexError: If an entry lies outside the dimensions in the header.
        """
        header = stream.readline().split()
        if len(header) != 2:
            raise ValueError(f"Expected '<num_rows> <num_cols>' header, got {' '.join(header)!r}")
        try:
            num_rows, num_cols = int(header[0]), int(header[1])
        except ValueError as e:
            raise ValueError(f"Invalid matrix dimensions in header: {' '.join(header)!r}") from e
        if num_rows < 0 or num_cols < 0:
            raise ValueError(f"Invalid matrix dimensions in header: {num_rows} {num_cols}")

        matrix = cls(num_rows, num_cols)
        for line in stream:
            tokens = line.split()
            if len(tokens) != 3:
                break

            i, j, v = int(tokens[0]), int(tokens[1]), float(tokens[2])
            if i < 0 or i >= num_rows:
                raise IndexError(f"Invalid user ID {i}, expected a value in [0, {num_rows - 1}].")
            if j < 0 or j >= num_cols:
                raise IndexError(f"Invalid weight ID {j}, expected a value in [0, {num_cols - 1}].")
            matrix.values[i, j] = v

        return matrix

    def save(self, path):
        with open(path, 'w') as f:
            self.write(f)

    @classmethod
    def load(cls, path):
        with open(path, 'r') as f:
            return cls.read(f)

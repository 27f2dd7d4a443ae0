"""helper classes for factoryqueue logging"""

import logging
from socket import gethostname


class FactoryQueueFormatter(logging.Formatter):
    """
    A custom formatter for factoryqueue logging with additional attributes.

    The available attributes are listed in the
    `python documentation <https://docs.python.org/3/library/logging.html#logrecord-attributes>`_ .
    Additionally, the formatter provides the following factoryqueue specific attributes:

    .. table::

        +-----------------------+--------------------------------------------------+
        | attribute             | description                                      |
        +=======================+==================================================+
        | %(hostname)           | The hostname of the machine where the log was    |
        |                       | emitted                                          |
        +-----------------------+--------------------------------------------------+

    """

    def format(self, record):
        record.hostname = gethostname()
        return super().format(record)

__version__ = "1.0.0"
__author__ = "memdynamo maintainers"
__author_email__ = "memdynamo@users.noreply.github.com"

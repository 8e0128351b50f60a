from .core import *
from .pk_dataloader import PKKeyLoader
from .fk_dataloader import FKKeyLoader
from .django import model_batch_function, reverse_fk_batch_function
from .field import loader_field, loader_resolver

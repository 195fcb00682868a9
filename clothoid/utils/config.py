import copy
from typing import Union

import numpy as np


def merge_config_with_unknown_keys(old_dict, new_dict):
    return merge_config(old_dict, new_dict, new_keys_allowed=True)


def merge_config(old_dict, new_dict, new_keys_allowed=False, unchangeable=False):
    """
    Return a new Config holding old_dict updated by new_dict. Neither input is modified.

    :param old_dict: defaults
    :param new_dict: overrides, None means no override
    :param new_keys_allowed: if False, keys of new_dict missing from old_dict raise KeyError
    :param unchangeable: lock the returned config
    """
    merged = Config(old_dict).update(new_dict, allow_add_new_key=new_keys_allowed)
    merged.set_unchangeable(unchangeable)
    return merged


class Config:
    """
    A flat, type-checked dict of evaluation settings.

    Values keep the type of their default: updating a float entry with an int is fine, updating it with a str is
    not. Use register_type(key, None) to switch the type check off for an entry. An unchangeable Config can be
    shared between segments, since nothing can write into it.
    """
    def __init__(self, config: Union["Config", dict], unchangeable=False):
        self._unchangeable = False
        if isinstance(config, Config):
            config = config.get_dict()
        self._config = copy.deepcopy(dict(config or dict()))
        self._types = dict()
        for k, v in self._config.items():
            super(Config, self).__setattr__(k, v)
        self._unchangeable = unchangeable

    def register_type(self, key, *types):
        """
        Register special types for item in config. This is used for mixed type declaration.
        Note that is the type is declared as None, then we will not check type for this item.
        """
        assert key in self._config
        self._types[key] = set(types)

    def get_dict(self):
        return dict(self._config)

    def update(self, new_dict: Union[dict, "Config"], allow_add_new_key=False):
        """
        Update this config with extra items
        :param new_dict: extra configs
        :param allow_add_new_key: whether allowing to add new keys to existing configs or not
        """
        new_dict = new_dict or dict()
        if isinstance(new_dict, Config):
            new_dict = new_dict.get_dict()
        if not allow_add_new_key:
            diff = set(new_dict).difference(set(self._config))
            if len(diff) > 0:
                raise KeyError(
                    "'{}' does not exist in existing config. Existing keys: {}.".format(diff, self._config.keys())
                )
        for k, v in new_dict.items():
            if k not in self._config:
                self[k] = v
            else:
                self._set_item(k, v)
        return self

    def _check_and_raise_key_error(self, key):
        if key not in self._config:
            raise KeyError(
                "'{}' does not exist in existing config. "
                "Please use config.update(...) to update the config. Existing keys: {}.".format(
                    key, self._config.keys()
                )
            )

    def _set_item(self, key, value):
        self._check_and_raise_key_error(key)
        if isinstance(value, (np.floating, np.integer)):
            value = value.item()
        if self._unchangeable:
            raise ValueError("This config is not changeable!")
        old = self._config[key]
        if old is not None and value is not None:
            type_correct = isinstance(value, type(old))
            if isinstance(old, float):
                # int can be transformed to float
                type_correct = type_correct or isinstance(value, int)
            if key in self._types:
                if None in self._types[key]:
                    type_correct = True
                type_correct = type_correct or (type(value) in self._types[key])
            assert type_correct, "TypeError: {}:{}".format(key, value)
        self[key] = value

    def copy(self, unchangeable=None):
        """If unchangeable is None, the copy is locked the same way as this config."""
        if unchangeable is None:
            unchangeable = self._unchangeable
        return Config(self, unchangeable)

    def is_unchangeable(self):
        return self._unchangeable

    def set_unchangeable(self, unchangeable):
        self._unchangeable = unchangeable

    def __getitem__(self, item):
        self._check_and_raise_key_error(item)
        return self._config[item]

    def __setitem__(self, key, value):
        if self._unchangeable:
            raise ValueError("This config is not changeable!")
        self._config[key] = value
        super(Config, self).__setattr__(key, value)

    def __setattr__(self, key, value):
        if key not in ["_config", "_types", "_unchangeable"]:
            self.__setitem__(key, value)
        else:
            super(Config, self).__setattr__(key, value)

    def get(self, key, *args):
        return self._config.get(key, *args)

    def items(self):
        return self._config.items()

    def keys(self):
        return self._config.keys()

    def __contains__(self, item):
        return item in self._config

    def __repr__(self):
        return str(self._config)

    def __len__(self):
        return len(self._config)

    def __iter__(self):
        return iter(self.keys())

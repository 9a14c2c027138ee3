"""
Layered configuration files.

A configuration named `name` is assembled from the files in a directory:
`name.default.cfg`, then `name.<os>.cfg`, then `~/name.cfg` in the user's home, then `name.cfg`.
Later files override earlier ones. The result is validated against `name.schema.cfg`, which also
converts the values to their declared types.
"""
import logging
import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

logger = logging.getLogger(__name__)

# The default extension for configuration files
config_extension = '.cfg'


class ConfigError(ConfigObjError):
    """ The configuration could not be loaded or failed validation. """


def config_flavor(name, flavor=None):
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory=None):
    return os.path.join(directory or '', name + config_extension)


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, subpart=None) -> ConfigObj:
    """
    Loads a specialization of a config file, named after the base followed by a period and the
    specialization. A missing file loads as an empty configuration.
    """
    file = config_filename(config_flavor(name, subpart), directory)
    return load_config_file_base(file, False)


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def describe_errors(config, result):
    """
    >>> describe_errors(ConfigObj(), True)
    []
    """
    errors = []
    for sections, key, error in flatten_errors(config, result):
        where = '.'.join(sections + [key] if key else sections)
        errors.append("%s: %s" % (where, error or 'missing'))
    return errors


def load_config(name, directory):
    """
    Loads all the configuration files that relate to the given name, merges them and
    validates the result against the schema.
    :raises ConfigError: when validation fails
    """
    local_config = config_flavor_file(name, directory)
    default_config = config_flavor_file(name, directory, 'default')
    platform_config = config_flavor_file(name, directory, os_name())
    user_config = load_config_file_base(os.path.expanduser('~/' + name + config_extension), must_exist=False)
    config = ConfigObj()
    config.merge(default_config)
    config.merge(platform_config)
    config.merge(user_config)
    config.merge(local_config)

    config.configspec = config_flavor_file(name, directory, 'schema')
    result = config.validate(Validator())
    if result is not True:
        errors = describe_errors(config, result)
        raise ConfigError("the config file %s failed validation %s" % (name, ', '.join(errors)))
    logger.debug("loaded config %s from %s", name, directory)
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:    The root configuration
    :param path:    An iterable that lists the names of the sections to descend through
    :return: The section identified by the path, or None
    """
    for p in path:
        conf = conf.get(p, None)
        if conf is None:
            return None
    return conf


def apply_conf_path(conf: Section, name_parts, target):
    conf = fetch_conf_path(conf, name_parts)
    if conf:
        apply_conf(conf, target)


def apply_conf(conf: Section, target):
    """
    Sets each value in the section on the target, where the target already has an attribute of that name.
    Nested sections and unknown names are ignored.
    """
    for k, v in conf.items():
        if isinstance(v, Section):
            continue
        if hasattr(target, k):
            setattr(target, k, v)
        else:
            logger.debug("ignoring unknown setting %s", k)


def apply(target, config_path, config_name, directory):
    """
    Applies the values in a section of a configuration to a target object.
    :param target: The object to receive the values defined
    :param config_path: The path of the section. The path is split on '.'.
    :param config_name: The configuration to load.
    :param directory: the directory containing the config files
    """
    conf = load_config(config_name, directory)
    apply_conf_path(conf, config_path.split('.'), target)
    return conf

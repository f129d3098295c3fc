import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator, VdtTypeError, VdtValueError

from portterm.exceptions import ConfigurationError

# The default extension for configuration files
config_extension = '.cfg'

# the application configuration name
config_name = 'portterm'

config_directory = os.path.dirname(os.path.abspath(__file__))


def config_flavor(name, flavor=None):
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory=None):
    """
    Determines the location of a config file in the given directory.
    """
    config_file = os.path.join(directory, name + config_extension)
    return config_file


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
    Loads a specialization of a config file. The configuration file is expected to be named
    after the base, followed by a period and then the specialization, if the specialization is given,
    otherwise just the base name. A missing file gives an empty configuration.
    :param name:    The name of the base configuration
    :param subpart: The name of the specialization.
    :return: The ConfigObj for the configuration file.
    """
    configname = config_flavor(name, subpart)
    file = config_filename(configname, directory)
    config = load_config_file_base(file, False)
    return config


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


def user_config_file(name):
    return os.path.expanduser('~/' + name + config_extension)


def load_config(name, directory, override=None):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are merged in this order, later ones taking precedence:
        - the default specialization
        - the platform specialization
        - the user's file in the home directory
        - the override file, when given. This file must exist.
        The merged configuration is then validated against the schema specialization,
        which also converts each value to its declared type and supplies missing defaults.
    :param directory: the location of the configuration files
    :param override: an explicit configuration file, such as one named on the command line
    :return: the validated ConfigObj
    """
    default_config = config_flavor_file(name, directory, 'default')
    platform_config = config_flavor_file(name, directory, os_name())
    user_config = load_config_file_base(user_config_file(name), must_exist=False)
    schema = config_filename(config_flavor(name, 'schema'), directory)
    config = ConfigObj(configspec=schema, interpolation='Template')
    config.merge(default_config)
    config.merge(platform_config)
    config.merge(user_config)
    if override:
        config.merge(load_config_file_base(override))

    result = config.validate(Validator({'control_key': control_key}), preserve_errors=True)
    if result is not True:
        problems = []
        for section_list, key, error in flatten_errors(config, result):
            where = '.'.join(section_list + [key] if key else section_list)
            problems.append('%s: %s' % (where, error or 'missing'))
        raise ConfigObjError("the config file %s failed validation: %s" % (name, '; '.join(problems)))
    return config


# characters that give a distinct control code when combined with ctrl
control_characters = 'abcdefghijklmnopqrstuvwxyz[\\]^_'


def control_key(value):
    """
    Schema check for a shortcut character. Letters are folded to lower case.
    >>> control_key('Q')
    'q'
    """
    if not isinstance(value, str):
        raise VdtTypeError(value)
    value = value.lower()
    if len(value) != 1 or value not in control_characters:
        raise VdtValueError(value)
    return value


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:   An iterable that lists the names of the config to resolve
    :return: The configuration object identified by the path, or None
    """
    for p in path:    # lookup specific section
        conf = conf.get(p, None)
        if conf is None:
            return
    return conf


def apply_conf_path(conf: Section, name_parts, target):
    """
    Applies a configuration path to a given target object
    :param conf:        The root configuration object
    :param name_parts:  The path of the configuration to apply
    :param target:      The target object that receives the configured values
    :return:
    """
    conf = fetch_conf_path(conf, name_parts)
    if conf:
        apply_conf(conf, target)


def apply_conf(conf: Section, target):
    """
    Applies the attributes contained in a configuration object to a target object.
    It does this by iterating over the items in the configuration and setting any attributes with the same name.
    :param conf:
    :param target:
    :return:
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)


class TimingSettings:
    """ UI cadence. """

    def __init__(self, tick_interval=0.2, render_interval=1 / 60, device_refresh=1.0):
        self.tick_interval = tick_interval
        self.render_interval = render_interval
        self.device_refresh = device_refresh


class LogSettings:

    def __init__(self, file='portterm.log', level='INFO'):
        self.file = file
        self.level = level


class Settings:
    """ All application settings, grouped by concern. """

    def __init__(self):
        # imported here so the config package does not depend on the modules it configures
        from portterm.connector.bridge import BridgeSettings
        from portterm.keys import KeySettings
        self.timing = TimingSettings()
        self.bridge = BridgeSettings()
        self.keys = KeySettings()
        self.logging = LogSettings()

    def apply(self, conf: Section):
        apply_conf_path(conf, ['timing'], self.timing)
        apply_conf_path(conf, ['timing'], self.bridge)
        apply_conf_path(conf, ['serial'], self.bridge)
        apply_conf_path(conf, ['keys'], self.keys)
        apply_conf_path(conf, ['logging'], self.logging)
        return self


def load_settings(override=None, directory=config_directory) -> Settings:
    """
    Loads and validates the layered configuration.
    :param override: an optional configuration file that takes precedence over all others
    :raises ConfigurationError: if a file cannot be read or the result fails validation
    """
    try:
        conf = load_config(config_name, directory, override)
    except (ConfigObjError, IOError) as e:
        raise ConfigurationError(str(e)) from e
    return Settings().apply(conf)

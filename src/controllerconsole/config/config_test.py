import os
import unittest
from unittest.mock import Mock, patch

from configobj import ConfigObjError, ConfigObj
from hamcrest import assert_that, is_, equal_to, has_property, is_not, calling, raises, none

from controllerconsole.config.config import ConfigError, apply, apply_conf, config_filename, config_flavor, \
    fetch_conf_path, apply_conf_path, load_config, load_config_file_base, map_os_name

config_name = 'config_test'
directory = os.path.dirname(__file__)


class Target:
    def __init__(self):
        self.timeout = None
        self.poll_timeout = None
        self.name = None
        self.retries = None


class ConfigTestCase(unittest.TestCase):

    def test_config_file_not_found(self):
        assert_that(calling(load_config_file_base).with_args('blah'), raises(IOError))

    def test_missing_optional_file_is_empty(self):
        assert_that(load_config_file_base('blah', must_exist=False), is_(equal_to(ConfigObj())))

    def test_config_file_invalid_schema(self):
        assert_that(calling(load_config).with_args('config_test_invalid_schema', directory),
                    raises(ConfigError, "the config file config_test_invalid_schema failed validation"))

    def test_config_file_invalid_syntax(self):
        assert_that(calling(load_config_file_base).with_args(os.path.join(directory, 'config_test_invalid_syntax.cfg')),
                    raises(ConfigObjError, "Section too nested at line 1. at .*config_test_invalid_syntax.cfg"))

    def test_can_retrieve_config_file(self):
        file = config_filename(config_flavor(config_name, "default"), directory)
        assert_that(os.path.exists(file), is_(True), "expected config path %s to exist" % file)

    @patch('controllerconsole.config.config.os.path.expanduser', return_value='/nonexistent/config_test.cfg')
    def test_layers_are_merged_and_validated(self, expanduser):
        config = load_config(config_name, directory)
        console = config['console']
        assert_that(console['timeout'], is_(2.5))         # from default
        assert_that(console['name'], is_('local'))         # local overrides default
        assert_that(console['retries'], is_(4))            # from schema
        assert_that(console['poll_timeout'], is_(55.0))

    @patch('controllerconsole.config.config.os.path.expanduser', return_value='/nonexistent/config_test.cfg')
    def test_apply(self, expanduser):
        target = Target()
        apply(target, 'console', config_name, directory)
        assert_that(target.name, is_('local'))
        assert_that(target.retries, is_(4))

    def test_map_os_name(self):
        assert_that(map_os_name('Windows'), is_('windows'))
        assert_that(map_os_name('Darwin'), is_('osx'))
        assert_that(map_os_name('darwin'), is_('osx'))

    def test_non_existent_config_path(self):
        sut = ConfigObj()
        assert_that(fetch_conf_path(sut, ['abcd']), is_(none()))

    def test_non_existent_apply_config_path(self):
        sut = ConfigObj()
        target = Mock()
        apply_conf_path(sut, ['abcd'], target)
        assert_that(target.method_calls, is_([]))

    def test_apply_conf_only_sets_known_attributes(self):
        conf = ConfigObj({'timeout': 3, 'unknown': 1, 'nested': {'timeout': 9}})
        target = Target()
        apply_conf(conf, target)
        assert_that(target.timeout, is_(3))
        assert_that(target, is_not(has_property('unknown')))

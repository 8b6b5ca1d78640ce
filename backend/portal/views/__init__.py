from portal.views.account_handlers import (
    create_character as create_character,
)
from portal.views.account_handlers import (
    delete_character as delete_character,
)
from portal.views.account_handlers import (
    get_profile as get_profile,
)
from portal.views.account_handlers import (
    list_characters as list_characters,
)
from portal.views.account_handlers import (
    remove_secondary_password as remove_secondary_password,
)
from portal.views.account_handlers import (
    set_secondary_password as set_secondary_password,
)
from portal.views.account_handlers import (
    transfer_jpoint as transfer_jpoint,
)
from portal.views.auth_handlers import login as login
from portal.views.auth_handlers import login_page as login_page
from portal.views.auth_handlers import logout as logout
from portal.views.auth_handlers import register as register
from portal.views.auth_handlers import register_page as register_page
from portal.views.handlers import create_templates as create_templates
from portal.views.handlers import dashboard_page as dashboard_page
from portal.views.handlers import health as health
from portal.views.handlers import landing_page as landing_page
from portal.views.handlers import security_page as security_page

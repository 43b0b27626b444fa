from filemarket.models.user import User
from filemarket.models.category import Category
from filemarket.models.digital_file import DigitalFile
from filemarket.models.payment_method import PaymentMethod
from filemarket.models.payment import Payment
from filemarket.models.purchase import Purchase
from filemarket.models.download import Download
from filemarket.models.site_setting import SiteSetting

# add ALL models here

# walcard/domain/messages.py
# komunikaty dla uzytkownika (UI jest po arabsku)

UNEXPECTED_ERROR = "حدث خطأ غير متوقع"
LOGIN_REQUIRED = "يجب تسجيل الدخول أولاً"

# auth
NO_ACCOUNT = "لا يوجد حساب مرتبط بهذا الرقم"
PENDING_APPROVAL = "حسابك قيد المراجعة. سيتم إشعارك عند الموافقة عليه."
LOGIN_SUCCESS = "تم تسجيل الدخول بنجاح"
LOGIN_FAILED = "حدث خطأ أثناء تسجيل الدخول"
PHONE_REQUIRED = "الرجاء إدخال رقم الهاتف"
OTP_SENT = "تم إرسال رمز التحقق"
OTP_SEND_FAILED = "حدث خطأ أثناء إرسال رمز التحقق"
OTP_INVALID_FORMAT = "الرجاء إدخال رمز التحقق المكون من 6 أرقام"
OTP_VERIFIED = "تم التحقق من الرمز بنجاح"
OTP_VERIFY_FAILED = "رمز التحقق غير صحيح أو منتهي الصلاحية"

# cart
CART_ADDED = "تم إضافة المنتج إلى السلة"
CART_ADD_FAILED = "حدث خطأ أثناء إضافة المنتج إلى السلة"
CART_REMOVED = "تم إزالة المنتج من السلة"
CART_REMOVE_FAILED = "حدث خطأ أثناء إزالة المنتج من السلة"
CART_QUANTITY_UPDATED = "تم تحديث الكمية"
CART_UPDATE_FAILED = "حدث خطأ أثناء تحديث الكمية"
CART_CLEARED = "تم تفريغ السلة"
CART_CLEAR_FAILED = "حدث خطأ أثناء تفريغ السلة"
CART_EMPTY = "السلة فارغة"
CART_INVALID_QUANTITY = "الكمية يجب أن تكون أكبر من صفر"
PRODUCT_MISSING = "المنتج {product_id} غير متوفر"
PRODUCT_INACTIVE = "المنتج {name} غير متوفر حالياً"

# orders
ORDER_CREATED = "تم إنشاء الطلب بنجاح"
ORDER_CREATE_FAILED = "حدث خطأ أثناء إنشاء الطلب"
ORDER_ITEMS_FAILED = "حدث خطأ أثناء إنشاء عناصر الطلب"
ORDER_NOT_FOUND = "الطلب غير موجود"
ORDER_NOT_CANCELLABLE = "لا يمكن إلغاء هذا الطلب"
ORDER_CANCELLED = "تم إلغاء الطلب"
ORDER_CANCEL_FAILED = "حدث خطأ أثناء إلغاء الطلب"
INVENTORY_RESTORED = "تم استعادة المخزون بنجاح"
INVENTORY_NOTHING_TO_RESTORE = "لا توجد عناصر لاستعادة مخزونها"
INVENTORY_RESTORE_FAILED = "فشل في استعادة مخزون {names}"
ORDER_ITEMS_LOAD_FAILED = "فشل في جلب عناصر الطلب"

# favorites
FAVORITE_ADDED = "تمت إضافة المنتج إلى المفضلة"
FAVORITE_REMOVED = "تمت إزالة المنتج من المفضلة"
FAVORITE_ADD_FAILED = "حدث خطأ أثناء إضافة المنتج للمفضلة"
FAVORITE_REMOVE_FAILED = "حدث خطأ أثناء إزالة المنتج من المفضلة"
FAVORITE_TOGGLE_FAILED = "حدث خطأ أثناء تحديث المفضلة"
FAVORITES_CLEARED = "تم حذف جميع المنتجات من المفضلة"
FAVORITES_CLEAR_FAILED = "حدث خطأ أثناء حذف المفضلة"

# media
UPLOAD_SUCCESS = "تم رفع الصورة بنجاح"
UPLOAD_FAILED = "حدث خطأ أثناء رفع الصورة"
DELETE_SUCCESS = "تم حذف الصورة"
DELETE_FAILED = "حدث خطأ أثناء حذف الصورة"
